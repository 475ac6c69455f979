"""
HMAC-SHA256 request signing for the PAYKU gateway.

The gateway verifies every request against a signature computed over a
canonical string built from the request payload and a millisecond timestamp:

    timestamp is merged into the payload as a string
    keys are sorted ascending
    entries are joined as key=value pairs separated by '&', unescaped

The canonical string is signed with the shared secret and sent as lowercase
hex. Scalars are rendered the way the gateway's JavaScript runtime renders
them, so booleans become ``true``/``false``, ``None`` becomes ``null`` and
numbers follow ``Number.prototype.toString`` (``100.0`` is ``100``, ``1e-7``
stays ``1e-7``).
"""
import hashlib
import hmac
import math
import time
from decimal import Decimal
from typing import Any, Mapping, Optional

TIMESTAMP_FIELD = "timestamp"

# Integers from this magnitude on are printed in exponent form by JavaScript
JS_EXPONENT_THRESHOLD = 10**21


class SignatureError(ValueError):
    """Raised when a payload cannot be canonicalized for signing."""

    pass


def current_timestamp_ms() -> int:
    """Return the current epoch time in milliseconds."""
    return int(time.time() * 1000)


def _format_number(value: float) -> str:
    """
    Render a finite float using ECMAScript ``Number::toString`` rules.

    Digits come from ``repr``, the shortest string that round-trips, which is
    also the digit string JavaScript prints.
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    digits_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()[1:]
    digits = "".join(str(d) for d in digits_tuple)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return f"{sign}{digits[:n]}.{digits[n:]}"
    if -6 < n <= 0:
        return f"{sign}0.{'0' * -n}{digits}"

    e = n - 1
    mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def format_value(value: Any) -> str:
    """
    Render a payload scalar for the canonical string.

    Args:
        value: Scalar payload value

    Returns:
        str: Canonical rendering of the value

    Raises:
        SignatureError: If the value is a nested mapping or sequence
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        if abs(value) >= JS_EXPONENT_THRESHOLD:
            return _format_number(float(value))
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return _format_number(value)
    raise SignatureError(
        f"Cannot sign non-scalar value of type {type(value).__name__}"
    )


def canonicalize(payload: Optional[Mapping[str, Any]], timestamp: str) -> str:
    """
    Build the canonical string for a payload and timestamp.

    Args:
        payload: Request payload (may be empty or None)
        timestamp: Epoch milliseconds as a string

    Returns:
        str: ``key1=value1&key2=value2...`` with keys sorted ascending
    """
    data = dict(payload or {})
    data[TIMESTAMP_FIELD] = timestamp

    for key, value in data.items():
        if not isinstance(key, str):
            raise SignatureError(f"Payload keys must be strings, got {type(key).__name__}")
        try:
            format_value(value)
        except SignatureError as e:
            raise SignatureError(f"Field '{key}': {e}") from e

    return "&".join(f"{key}={format_value(data[key])}" for key in sorted(data))


def sign(secret_key: str, canonical_input: str) -> str:
    """
    HMAC-SHA256 a canonical string.

    Args:
        secret_key: Shared secret
        canonical_input: Output of :func:`canonicalize`

    Returns:
        str: Lowercase hex digest
    """
    return hmac.new(
        secret_key.encode("utf-8"),
        canonical_input.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def generate_signature(
    secret_key: str, payload: Optional[Mapping[str, Any]], timestamp: str
) -> str:
    """Canonicalize ``payload`` with ``timestamp`` and sign it."""
    return sign(secret_key, canonicalize(payload, timestamp))
