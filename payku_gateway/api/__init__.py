"""FastAPI application and routes."""
from .main import app
from .schemas import CreateTransactionRequest, TransferRequest, WithdrawRequest

__all__ = [
    "app",
    "CreateTransactionRequest",
    "TransferRequest",
    "WithdrawRequest",
]
