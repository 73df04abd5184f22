"""Server database using SQLAlchemy with SQLite.

This module provides:
- Token-based authentication
- Collection/document storage
"""

from __future__ import annotations

import hashlib
import json
import secrets
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, distinct, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from fitsync.server.models import Base, Document, Token

if TYPE_CHECKING:
    from sqlalchemy import Engine

TOKEN_PREFIX = "fs_"


def hash_token(token: str) -> str:
    """Hash a token using SHA-256.

    Args:
        token: Raw token string.

    Returns:
        Hex-encoded SHA-256 hash.
    """
    return hashlib.sha256(token.encode()).hexdigest()


class Database:
    """SQLAlchemy database for the document server.

    Uses SQLite with WAL mode for better concurrency with multiple readers.
    Pass ":memory:" for a private in-memory database shared by all threads.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
        """
        if str(db_path) == ":memory:":
            self._db_path: Path | None = None
            self._engine: Engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        else:
            self._db_path = Path(db_path)
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(
                f"sqlite:///{self._db_path}",
                connect_args={"check_same_thread": False},
                echo=False,
            )
            with self._engine.connect() as conn:
                conn.exec_driver_sql("PRAGMA journal_mode=WAL")

        # Create tables if they don't exist
        Base.metadata.create_all(self._engine)

    @property
    def location(self) -> str:
        return str(self._db_path) if self._db_path else "in-memory"

    def close(self) -> None:
        """Close the database connection."""
        self._engine.dispose()

    def _session(self) -> Session:
        """Create a new database session."""
        return Session(self._engine)

    # === Token operations ===

    def create_token(self, name: str) -> tuple[str, Token]:
        """Create a new authentication token.

        Args:
            name: Label for the client holding the token.

        Returns:
            Tuple of (raw_token, Token object). Only the hash is stored.
        """
        raw_token = TOKEN_PREFIX + secrets.token_urlsafe(32)
        with self._session() as session:
            token = Token(name=name, token_hash=hash_token(raw_token))
            session.add(token)
            session.commit()
            session.refresh(token)
            session.expunge(token)
            return raw_token, token

    def validate_token(self, raw_token: str) -> Token | None:
        """Validate a token and return it if valid.

        Args:
            raw_token: Raw token string.

        Returns:
            Token if valid, None otherwise.
        """
        token_hash = hash_token(raw_token)
        with self._session() as session:
            stmt = select(Token).where(Token.token_hash == token_hash, Token.revoked == False)  # noqa: E712
            token = session.execute(stmt).scalar_one_or_none()
            if token is None:
                return None

            token.last_used = datetime.now(UTC)
            session.commit()
            session.refresh(token)
            session.expunge(token)
            return token

    def revoke_token(self, token_id: int) -> bool:
        """Revoke a token.

        Returns:
            True if the token existed.
        """
        with self._session() as session:
            token = session.get(Token, token_id)
            if token is None:
                return False
            token.revoked = True
            session.commit()
            return True

    def list_tokens(self) -> list[Token]:
        """List all tokens, oldest first."""
        with self._session() as session:
            tokens = list(session.execute(select(Token).order_by(Token.id)).scalars())
            for token in tokens:
                session.expunge(token)
            return tokens

    # === Document operations ===

    def set_document(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> Document:
        """Create or replace a document.

        Args:
            collection: Collection name.
            doc_id: Document id within the collection.
            fields: New document content; replaces the previous content.

        Returns:
            The stored Document.
        """
        payload = json.dumps(fields)
        with self._session() as session:
            stmt = select(Document).where(
                Document.collection == collection,
                Document.doc_id == doc_id,
            )
            document = session.execute(stmt).scalar_one_or_none()
            if document is None:
                document = Document(collection=collection, doc_id=doc_id, fields_json=payload)
                session.add(document)
            else:
                document.fields_json = payload
                document.updated_at = datetime.now(UTC)
            session.commit()
            session.refresh(document)
            session.expunge(document)
            return document

    def get_document(self, collection: str, doc_id: str) -> Document | None:
        """Get a document by collection and id.

        Returns:
            Document if found, None otherwise.
        """
        with self._session() as session:
            stmt = select(Document).where(
                Document.collection == collection,
                Document.doc_id == doc_id,
            )
            document = session.execute(stmt).scalar_one_or_none()
            if document:
                session.expunge(document)
            return document

    def list_documents(self, collection: str) -> list[Document]:
        """List all documents of a collection, ordered by id."""
        with self._session() as session:
            stmt = (
                select(Document)
                .where(Document.collection == collection)
                .order_by(Document.doc_id)
            )
            documents = list(session.execute(stmt).scalars())
            for document in documents:
                session.expunge(document)
            return documents

    def delete_document(self, collection: str, doc_id: str) -> bool:
        """Delete a document.

        Returns:
            True if a document was deleted.
        """
        with self._session() as session:
            stmt = select(Document).where(
                Document.collection == collection,
                Document.doc_id == doc_id,
            )
            document = session.execute(stmt).scalar_one_or_none()
            if document is None:
                return False
            session.delete(document)
            session.commit()
            return True

    def list_collections(self) -> list[str]:
        """List the names of collections holding at least one document."""
        with self._session() as session:
            stmt = select(distinct(Document.collection)).order_by(Document.collection)
            return list(session.execute(stmt).scalars())
