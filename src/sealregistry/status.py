"""
Access/status control for sealed documents.

Only the recorded owner may change a document's status, and only to a
member of the configured status set. Any allowed status may move to any
other; stricter lifecycles are layered on top via a TransitionPolicy.
"""

import logging
from typing import Iterable, Protocol

from .errors import InvalidStatusError, NotAuthorizedError
from .models import DocumentRecord, DocumentStatus

logger = logging.getLogger(__name__)


class TransitionPolicy(Protocol):
    def check(self, record: DocumentRecord, new_status: str) -> None:
        """Raise InvalidStatusError if the move is not permitted."""
        ...


class TerminalStatusPolicy:
    """Documents in a terminal status may not leave it."""

    def __init__(self, terminal_statuses: Iterable[str]):
        self.terminal_statuses = frozenset(terminal_statuses)

    def check(self, record: DocumentRecord, new_status: str) -> None:
        if record.status in self.terminal_statuses and new_status != record.status:
            raise InvalidStatusError(
                f"Document {record.id} is in terminal status {record.status!r}",
                document_id=record.id,
                current=record.status,
                requested=new_status,
            )


class StatusController:
    """
    Status-transition gate shared by the single and batch paths.

    Args:
        allowed_statuses: Closed set of valid statuses; must include "active"
        policy: Optional transition policy layered above the permissive machine
    """

    def __init__(
        self,
        allowed_statuses: Iterable[str],
        policy: TransitionPolicy | None = None,
    ):
        self.allowed_statuses = frozenset(allowed_statuses)
        if DocumentStatus.ACTIVE.value not in self.allowed_statuses:
            raise ValueError("allowed statuses must include 'active'")
        self.policy = policy

    @property
    def initial_status(self) -> str:
        return DocumentStatus.ACTIVE.value

    def is_allowed(self, status: str) -> bool:
        return status in self.allowed_statuses

    def authorize(self, record: DocumentRecord, caller: str) -> None:
        if caller != record.owner:
            logger.warning(
                "Status change by non-owner rejected",
                extra={"document_id": record.id, "caller": caller},
            )
            raise NotAuthorizedError(
                f"Caller is not the owner of document {record.id}",
                document_id=record.id,
                caller=caller,
            )

    def check_transition(self, record: DocumentRecord, new_status: str, caller: str) -> None:
        """
        Raise unless caller may move record to new_status.

        Ownership is checked before status validity, so a non-owner always
        gets NotAuthorized.
        """
        self.authorize(record, caller)

        if not self.is_allowed(new_status):
            logger.warning(
                "Invalid status rejected",
                extra={"document_id": record.id, "requested": new_status},
            )
            raise InvalidStatusError(
                f"Status {new_status!r} is not allowed",
                document_id=record.id,
                requested=new_status,
                allowed=sorted(self.allowed_statuses),
            )

        if self.policy is not None:
            self.policy.check(record, new_status)
