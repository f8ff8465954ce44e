"""Deterministic derivation of P-256 key pairs from (context, root, index)."""

from __future__ import annotations

from typing import Optional, Union

from ..crypto.p256 import P256KeyPair, derive_p256_keypair_from_seed, sha256
from ..domain.errors import (
    DerivatorNotConfiguredError,
    PropertyAlreadySetError,
    PropertyNotSetError,
)

Index = Union[int, str]

_PROPERTIES = ("context", "root")


def generate_plain_text_seed(context: str, root: str, index: Index) -> str:
    """Concatenate context, root and index into the plain text seed."""
    return f"{context}{root}{index}"


def hash_seed(plain_text_seed: str) -> bytes:
    """Hash a plain text seed (UTF-8) with SHA-256."""
    return sha256(plain_text_seed.encode("utf-8"))


class BaseDerivator:
    """Derives key pairs for a fixed context and root.

    Context and root are write-once: each may be set exactly one time, and
    derivation is only possible once both are present. Every index then maps
    to the same key pair on every call.
    """

    def __init__(self) -> None:
        self._context: Optional[str] = None
        self._root: Optional[str] = None

    def with_context(self, context: str) -> "BaseDerivator":
        if self._context is not None:
            raise PropertyAlreadySetError("context", self._context)
        self._context = context
        return self

    def with_root(self, root: str) -> "BaseDerivator":
        if self._root is not None:
            raise PropertyAlreadySetError("root")
        self._root = root
        return self

    def get_context(self) -> str:
        if self._context is None:
            raise PropertyNotSetError("context")
        return self._context

    def is_set(self, prop: str) -> bool:
        if prop not in _PROPERTIES:
            raise ValueError(f"Unknown derivator property: {prop}")
        return getattr(self, f"_{prop}") is not None

    def is_configured(self) -> bool:
        return self._context is not None and self._root is not None

    def assert_configured(self) -> tuple[str, str]:
        """Return ``(context, root)``.

        Raises:
            DerivatorNotConfiguredError: If context or root is missing.
        """
        if self._context is None or self._root is None:
            missing = [prop for prop in _PROPERTIES if not self.is_set(prop)]
            raise DerivatorNotConfiguredError(missing)
        return self._context, self._root

    def assemble_seed(self, index: Index) -> str:
        context, root = self.assert_configured()
        return generate_plain_text_seed(context, root, index)

    def hash_seed(self, index: Index) -> bytes:
        return hash_seed(self.assemble_seed(index))

    def derive_keypair(self, index: Index) -> P256KeyPair:
        """Derive the key pair for ``index``."""
        return derive_p256_keypair_from_seed(self.hash_seed(index))
