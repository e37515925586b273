"""Cross-module infrastructure exceptions."""

from __future__ import annotations


class PersistenceError(Exception):
    """A store write (single or batched) failed and was rolled back."""
