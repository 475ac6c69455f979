"""PAYKU payment gateway proxy: request signing, forwarding and rate limiting."""

__version__ = "0.1.0"
