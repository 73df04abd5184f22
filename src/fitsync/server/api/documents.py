"""Collection and document API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from fitsync.server.api.deps import get_current_token, get_db
from fitsync.server.database import Database
from fitsync.server.models import Token
from fitsync.server.schemas import (
    DocumentResponse,
    DocumentWriteRequest,
    document_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/collections", tags=["documents"])


@router.get("", response_model=list[str])
def list_collections(
    db: Database = Depends(get_db),
    _auth: Token = Depends(get_current_token),
) -> list[str]:
    """List collections that hold at least one document."""
    return db.list_collections()


@router.get("/{collection}/documents", response_model=list[DocumentResponse])
def list_documents(
    collection: str,
    db: Database = Depends(get_db),
    _auth: Token = Depends(get_current_token),
) -> list[DocumentResponse]:
    """List all documents in a collection (empty for an unknown collection)."""
    return [document_to_response(d) for d in db.list_documents(collection)]


@router.get("/{collection}/documents/{doc_id}", response_model=DocumentResponse)
def get_document(
    collection: str,
    doc_id: str,
    db: Database = Depends(get_db),
    _auth: Token = Depends(get_current_token),
) -> DocumentResponse:
    """Get a single document."""
    document = db.get_document(collection, doc_id)
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document not found: {collection}/{doc_id}",
        )
    return document_to_response(document)


@router.put("/{collection}/documents/{doc_id}", response_model=DocumentResponse)
def set_document(
    collection: str,
    doc_id: str,
    request: DocumentWriteRequest,
    db: Database = Depends(get_db),
    auth: Token = Depends(get_current_token),
) -> DocumentResponse:
    """Create or replace a document."""
    document = db.set_document(collection, doc_id, request.fields)
    logger.debug("Document %s/%s written by %s", collection, doc_id, auth.name)
    return document_to_response(document)


@router.delete(
    "/{collection}/documents/{doc_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_document(
    collection: str,
    doc_id: str,
    db: Database = Depends(get_db),
    auth: Token = Depends(get_current_token),
) -> Response:
    """Delete a document."""
    if not db.delete_document(collection, doc_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document not found: {collection}/{doc_id}",
        )
    logger.debug("Document %s/%s deleted by %s", collection, doc_id, auth.name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
