"""Core utilities for MakeMyDays."""

from .errors import PermissionDeniedError, StoreError, TransactionConflict
from .messaging import build_messaging_url, normalise_phone
from .stores import DocumentStore, Fault, Fetched, InMemoryDocumentStore

__all__ = [
    "DocumentStore",
    "Fault",
    "Fetched",
    "InMemoryDocumentStore",
    "PermissionDeniedError",
    "StoreError",
    "TransactionConflict",
    "build_messaging_url",
    "normalise_phone",
]
