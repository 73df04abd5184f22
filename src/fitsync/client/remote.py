"""HTTP client for the remote document store.

This module provides:
- HTTPDocumentStore: Client for a collection/document addressed store
- RemoteDocument: A document as returned by the server
- APIError hierarchy mapped from HTTP status codes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from fitsync.core.config import RemoteConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Authentication failed."""


class NotFoundError(APIError):
    """Resource not found."""


@dataclass
class RemoteDocument:
    """Document stored in a remote collection."""

    id: str
    fields: dict[str, Any]
    updated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteDocument:
        """Create from API response dictionary."""
        return cls(
            id=data["id"],
            fields=dict(data.get("fields") or {}),
            updated_at=(
                datetime.fromisoformat(data["updated_at"])
                if data.get("updated_at")
                else None
            ),
        )


class HTTPDocumentStore:
    """HTTP client for the fitsync document server."""

    def __init__(
        self,
        config: RemoteConfig,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the document store client.

        Args:
            config: Server connection settings.
            client: Optional pre-built httpx client (e.g. a test client).
                The bearer token header is always set on it.
        """
        self._config = config
        if client is None:
            client = httpx.Client(
                base_url=config.server_url,
                timeout=config.timeout,
                verify=config.verify_ssl,
            )
        client.headers["Authorization"] = f"Bearer {config.token}"
        self._client = client

    @property
    def config(self) -> RemoteConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HTTPDocumentStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code == 401:
            raise AuthenticationError("Invalid or expired token", 401)
        if response.status_code == 404:
            raise NotFoundError("Resource not found", 404)
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", "Unknown error")
            except ValueError:
                detail = response.text or "Unknown error"
            raise APIError(str(detail), response.status_code)
        return response

    @staticmethod
    def _document_url(collection: str, doc_id: str) -> str:
        return f"/api/collections/{collection}/documents/{doc_id}"

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the server is reachable and healthy.

        Returns:
            True if server is healthy.
        """
        try:
            response = self._client.get("/health")
            return response.status_code == 200
        except httpx.RequestError:
            return False

    # === Document operations ===

    def list_collections(self) -> list[str]:
        """List the names of collections holding at least one document."""
        response = self._handle_response(self._client.get("/api/collections"))
        return list(response.json())

    def get_all_documents(self, collection: str) -> list[RemoteDocument]:
        """List all documents of a collection.

        Args:
            collection: Collection name.

        Returns:
            Documents in the collection (empty if the collection doesn't exist).
        """
        response = self._handle_response(
            self._client.get(f"/api/collections/{collection}/documents")
        )
        return [RemoteDocument.from_dict(d) for d in response.json()]

    def get_document(self, collection: str, doc_id: str) -> RemoteDocument:
        """Get a single document.

        Raises:
            NotFoundError: If the document doesn't exist.
        """
        response = self._handle_response(
            self._client.get(self._document_url(collection, doc_id))
        )
        return RemoteDocument.from_dict(response.json())

    def set_document(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> RemoteDocument:
        """Create or replace a whole document.

        Args:
            collection: Collection name.
            doc_id: Document id.
            fields: Flat field map; replaces any existing content.

        Returns:
            The stored document.
        """
        response = self._handle_response(
            self._client.put(
                self._document_url(collection, doc_id),
                json={"fields": fields},
            )
        )
        return RemoteDocument.from_dict(response.json())

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document.

        Raises:
            NotFoundError: If the document doesn't exist.
        """
        self._handle_response(
            self._client.delete(self._document_url(collection, doc_id))
        )
