"""Transaction bundle assembly and signing."""

from .builder import TransactionBuilder

__all__ = ["TransactionBuilder"]
