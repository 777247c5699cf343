"""Legal status transitions for documents.

    uploaded   -> processing, failed
    processing -> validated, failed
    validated  -> uploaded          (administrative reset)
    failed     -> uploaded          (administrative reset / retry)
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import ClassVar

from invoice_worker.documents.models import Document, ProcessingStatus
from invoice_worker.processor.exceptions import InvalidTransitionError


def utc_now() -> datetime:
    return datetime.now(UTC)


class DocumentStateMachine:
    """Applies status transitions and stamps the timestamps they imply."""

    TRANSITIONS: ClassVar[dict[ProcessingStatus, frozenset[ProcessingStatus]]] = {
        ProcessingStatus.UPLOADED: frozenset(
            {ProcessingStatus.PROCESSING, ProcessingStatus.FAILED}
        ),
        ProcessingStatus.PROCESSING: frozenset(
            {ProcessingStatus.VALIDATED, ProcessingStatus.FAILED}
        ),
        ProcessingStatus.VALIDATED: frozenset({ProcessingStatus.UPLOADED}),
        ProcessingStatus.FAILED: frozenset({ProcessingStatus.UPLOADED}),
    }

    def __init__(
        self,
        *,
        clear_errors_on_reset: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._clear_errors_on_reset = clear_errors_on_reset
        self._clock = clock

    def can_transition(self, from_status: ProcessingStatus, to_status: ProcessingStatus) -> bool:
        return to_status in self.TRANSITIONS.get(from_status, frozenset())

    def transition(
        self,
        document: Document,
        to_status: ProcessingStatus,
        reason: str | None = None,
    ) -> Document:
        """Return a copy of ``document`` moved to ``to_status``.

        Raises:
            InvalidTransitionError: if the table does not allow the move.
                The given document is never modified.
        """
        if not self.can_transition(document.status, to_status):
            raise InvalidTransitionError(document.status, to_status)

        now = self._clock()
        errors = list(document.errors)
        processed_at = document.processed_at

        if to_status.is_terminal:
            processed_at = now
        elif to_status is ProcessingStatus.UPLOADED:
            processed_at = None
            if self._clear_errors_on_reset:
                errors = []

        if to_status is ProcessingStatus.FAILED and reason:
            errors.append(reason)

        return replace(
            document,
            status=to_status,
            processed_at=processed_at,
            errors=errors,
            updated_at=now,
        )
