"""
Pydantic schemas for API request bodies.

Bodies are forwarded to PAYKU as-is, so unknown fields are kept. Every value
must be a scalar because the whole body is covered by the request signature.
"""
from typing import Annotated, Any, Dict, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    model_validator,
)


def _positive(v: Union[int, float]) -> Union[int, float]:
    if v <= 0:
        raise ValueError("Amount must be positive")
    return v


# Integers stay integers so the forwarded body matches what the client sent.
# Strict members reject booleans and numeric strings.
Amount = Annotated[Union[StrictInt, StrictFloat], AfterValidator(_positive)]


class GatewayPayload(BaseModel):
    """Base schema for bodies forwarded to PAYKU."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    @model_validator(mode="after")
    def validate_extra_scalars(self) -> "GatewayPayload":
        """Reject nested values in passthrough fields."""
        for key, value in (self.model_extra or {}).items():
            if isinstance(value, (dict, list)):
                raise ValueError(f"Field '{key}' must be a scalar value")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Body as sent to the gateway, omitting unset optional fields."""
        payload = self.model_dump(exclude_unset=True)
        payload.update(self.model_extra or {})
        return payload


class CreateTransactionRequest(GatewayPayload):
    """Request schema for creating a transaction."""

    external_id: str = Field(..., min_length=1, description="Merchant reference for the order")
    amount: Amount = Field(..., description="Transaction amount")
    customer_name: str = Field(..., min_length=1, description="Customer full name")
    customer_email: str = Field(..., min_length=1, description="Customer email address")
    customer_phone: Optional[str] = Field(default=None, description="Customer phone number")
    description: Optional[str] = Field(default=None, description="Order description")

    model_config = ConfigDict(
        extra="allow",
        coerce_numbers_to_str=True,
        json_schema_extra={
            "examples": [
                {
                    "external_id": "order-1001",
                    "amount": 10000,
                    "customer_name": "Budi Santoso",
                    "customer_email": "budi@example.com",
                }
            ]
        },
    )


class WithdrawRequest(GatewayPayload):
    """Request schema for withdrawing balance."""

    kode: str = Field(..., min_length=1, description="Destination channel code")
    amount: Amount = Field(..., description="Amount to withdraw")
    phone: str = Field(..., min_length=1, description="Destination phone or account number")
    userId: str = Field(..., min_length=1, description="PAYKU user ID")


class TransferRequest(GatewayPayload):
    """Request schema for transferring balance between accounts."""

    recipient_email: str = Field(..., min_length=1, description="Recipient account email")
    amount: Amount = Field(..., description="Amount to transfer")
    note: Optional[str] = Field(default=None, description="Transfer note")
