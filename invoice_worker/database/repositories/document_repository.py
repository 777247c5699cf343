from datetime import datetime
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from invoice_worker.database.connection import get_connection
from invoice_worker.database.repositories.base import BaseDocumentRepository
from invoice_worker.documents.models import Document, ProcessingStatus
from invoice_worker.documents.serialization import (
    metadata_from_dict,
    metadata_to_dict,
    recognition_from_dict,
    recognition_to_dict,
)
from invoice_worker.processor.exceptions import (
    ConcurrentTransitionError,
    DocumentNotFoundError,
)

_COLUMNS = """
    id, filename, content_ref, content_type, status, uploaded_at,
    processed_at, errors, recognition_result, metadata, created_at, updated_at
"""


class PostgresDocumentRepository(BaseDocumentRepository):
    """Database operations for the documents table.

    Each method borrows one pooled connection for a single statement and
    commits before returning it.
    """

    def create(self, document: Document) -> Document:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO documents (
                        filename, content_ref, content_type, status,
                        uploaded_at, processed_at, errors,
                        recognition_result, metadata
                    )
                    VALUES (%s, %s, %s, %s, COALESCE(%s, NOW()), %s, %s, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (
                        document.filename,
                        document.content_ref,
                        document.content_type,
                        document.status.value,
                        document.uploaded_at,
                        document.processed_at,
                        Jsonb(list(document.errors)),
                        _recognition_param(document),
                        _metadata_param(document),
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        return _row_to_document(row)

    def find_by_id(self, document_id: int) -> Document:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _row_to_document(row)

    def save(self, document: Document, expected_status: ProcessingStatus) -> Document:
        if document.id is None:
            raise ValueError("Only persisted documents can be saved")

        current: dict[str, Any] | None = None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE documents
                    SET filename = %s,
                        content_ref = %s,
                        content_type = %s,
                        status = %s,
                        processed_at = %s,
                        errors = %s,
                        recognition_result = %s,
                        metadata = %s,
                        updated_at = NOW()
                    WHERE id = %s AND status = %s
                    RETURNING {_COLUMNS}
                    """,
                    (
                        document.filename,
                        document.content_ref,
                        document.content_type,
                        document.status.value,
                        document.processed_at,
                        Jsonb(list(document.errors)),
                        _recognition_param(document),
                        _metadata_param(document),
                        document.id,
                        expected_status.value,
                    ),
                )
                row = cur.fetchone()
                if row is None:
                    cur.execute("SELECT status FROM documents WHERE id = %s", (document.id,))
                    current = cur.fetchone()
            conn.commit()

        if row is not None:
            return _row_to_document(row)
        if current is None:
            raise DocumentNotFoundError(f"Document {document.id} not found")
        raise ConcurrentTransitionError(
            expected_status,
            document.status,
            f"Document {document.id} is no longer {expected_status.value} "
            f"(now {current['status']})",
        )

    def delete(self, document_id: int) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM documents WHERE id = %s", (document_id,))
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def count_by_status(self) -> dict[ProcessingStatus, int]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT status, COUNT(*) FROM documents GROUP BY status")
                rows = cur.fetchall()

        counts = {status: 0 for status in ProcessingStatus}
        for status, count in rows:
            counts[ProcessingStatus(status)] = count
        return counts

    def find_next_uploaded(self) -> int | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id FROM documents
                    WHERE status = %s
                    ORDER BY uploaded_at, id
                    LIMIT 1
                    """,
                    (ProcessingStatus.UPLOADED.value,),
                )
                row = cur.fetchone()
        return row[0] if row is not None else None

    def find_stuck(self, older_than: datetime) -> list[Document]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM documents
                    WHERE status = %s AND updated_at < %s
                    ORDER BY updated_at
                    """,
                    (ProcessingStatus.PROCESSING.value, older_than),
                )
                rows = cur.fetchall()
        return [_row_to_document(row) for row in rows]

    def list(
        self,
        status: ProcessingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Document]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                if status is None:
                    cur.execute(
                        f"""
                        SELECT {_COLUMNS} FROM documents
                        ORDER BY uploaded_at DESC, id DESC
                        LIMIT %s OFFSET %s
                        """,
                        (limit, offset),
                    )
                else:
                    cur.execute(
                        f"""
                        SELECT {_COLUMNS} FROM documents
                        WHERE status = %s
                        ORDER BY uploaded_at DESC, id DESC
                        LIMIT %s OFFSET %s
                        """,
                        (status.value, limit, offset),
                    )
                rows = cur.fetchall()
        return [_row_to_document(row) for row in rows]


def _recognition_param(document: Document) -> Jsonb | None:
    if document.recognition_result is None:
        return None
    return Jsonb(recognition_to_dict(document.recognition_result))


def _metadata_param(document: Document) -> Jsonb | None:
    if document.metadata is None:
        return None
    return Jsonb(metadata_to_dict(document.metadata))


def _row_to_document(row: dict[str, Any]) -> Document:
    return Document(
        id=row["id"],
        filename=row["filename"],
        content_ref=row["content_ref"],
        content_type=row["content_type"],
        status=ProcessingStatus(row["status"]),
        uploaded_at=row["uploaded_at"],
        processed_at=row["processed_at"],
        errors=list(row["errors"] or []),
        recognition_result=recognition_from_dict(row["recognition_result"]),
        metadata=metadata_from_dict(row["metadata"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
