"""Relational persistence adapters."""

from docqa.providers.persistence.sqlite_store import SQLiteDocumentStore

__all__ = ["SQLiteDocumentStore"]
