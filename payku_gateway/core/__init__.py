"""Core signing and rate limiting logic."""
from .rate_limiter import KeyValueStore, RateLimitDecision, RateLimiter
from .signer import SignatureError, canonicalize, generate_signature, sign

__all__ = [
    "KeyValueStore",
    "RateLimitDecision",
    "RateLimiter",
    "SignatureError",
    "canonicalize",
    "generate_signature",
    "sign",
]
