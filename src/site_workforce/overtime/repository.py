from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import OvertimeStatus
from .model import OvertimeRequest


class OvertimeRepository(Protocol):
    def get(self, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def get_for_session(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def create_pending(
        self,
        *,
        worker_id: int,
        project_id: int,
        work_date: date,
        reason: str,
        requested_at: datetime,
    ) -> int:
        """Insert a pending request. Raises ConcurrentUpdateError if the session already has one."""

        raise NotImplementedError

    def reopen(
        self,
        *,
        request_id: int,
        expected_status: OvertimeStatus,
        reason: str,
        requested_at: datetime,
    ) -> bool:
        """Reset a decided request to pending, only if it is still in expected_status."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: OvertimeStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> bool:
        """Apply a decision, only if the request is still pending."""

        raise NotImplementedError

    def list_pending(self, *, limit: int = 200) -> Sequence[OvertimeRequest]:
        raise NotImplementedError
