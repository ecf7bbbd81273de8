"""Document store interface and an in-memory implementation."""

import copy
from abc import ABC, abstractmethod
from typing import Any


class DocumentNotFoundError(LookupError):
    """No document stored under the key."""

    def __init__(self, key: str):
        super().__init__(f"No document stored at {key}")
        self.key = key


class DocumentStore(ABC):
    """
    Key/value store of JSON documents.
    Implementations raise DocumentNotFoundError for missing keys and let any other
    failure propagate; the orchestrator turns those into StorageError.
    """

    @abstractmethod
    def get(self, key: str) -> dict[str, Any]:
        pass

    @abstractmethod
    def put(self, key: str, document: dict[str, Any]) -> None:
        pass


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store for tests and dry runs. Documents are deep-copied in and out."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None):
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})

    def get(self, key: str) -> dict[str, Any]:
        if key not in self._documents:
            raise DocumentNotFoundError(key)
        return copy.deepcopy(self._documents[key])

    def put(self, key: str, document: dict[str, Any]) -> None:
        self._documents[key] = copy.deepcopy(document)

    def keys(self) -> list[str]:
        return sorted(self._documents)
