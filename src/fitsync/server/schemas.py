"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from fitsync.server.models import Document

# === Document schemas ===


class DocumentWriteRequest(BaseModel):
    """Request body for creating or replacing a document."""

    fields: dict[str, Any] = Field(default_factory=dict)


class DocumentResponse(BaseModel):
    """Document data in responses."""

    id: str
    collection: str
    fields: dict[str, Any]
    created_at: str
    updated_at: str


# === Health schema ===


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


# === Converters ===


def document_to_response(document: Document) -> DocumentResponse:
    """Convert Document to response model."""
    return DocumentResponse(
        id=document.doc_id,
        collection=document.collection,
        fields=document.fields,
        created_at=document.created_at.isoformat(),
        updated_at=document.updated_at.isoformat(),
    )
