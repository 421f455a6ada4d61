"""Pure domain utilities: passwords, tokens.

These modules are intentionally free of FastAPI/HTTP concerns so they can be
unit-tested on their own.
"""
__all__ = ["passwords", "tokens"]
