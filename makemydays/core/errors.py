"""Persistence error hierarchy shared by every document store."""

from __future__ import annotations


class StoreError(RuntimeError):
    """Raised when a document store operation fails."""


class PermissionDeniedError(StoreError):
    """Raised when the store rejects a write under its access rules."""


class TransactionConflict(StoreError):
    """Raised when an optimistic transaction cannot commit cleanly."""


__all__ = ["PermissionDeniedError", "StoreError", "TransactionConflict"]
