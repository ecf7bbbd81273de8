"""Persistence for edge configs: storage keys and document stores."""

from edgepatch.store.base import DocumentNotFoundError, DocumentStore, InMemoryDocumentStore
from edgepatch.store.keys import config_key, metaconfig_key
from edgepatch.store.sqlite_store import SqliteDocumentStore

__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqliteDocumentStore",
    "config_key",
    "metaconfig_key",
]
