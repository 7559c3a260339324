"""OwnNest design registry and on-chain tokenization service."""

__version__ = "0.1.0"
