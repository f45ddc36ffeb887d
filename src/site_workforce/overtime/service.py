from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Sequence

from ..common.datetime_utils import now_local
from ..common.notifications import NotificationSink, notify_safely
from ..common.validators import parse_enum, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import OvertimeDecision, OvertimeStatus, Role
from ..core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    DuplicatePendingRequest,
    NotFound,
    NotPending,
)
from .model import OvertimeApprovalStatus, OvertimeRequest
from .repository import OvertimeRepository

logger = logging.getLogger(__name__)


class OvertimeApprovalManager:
    """Request/approve/reject lifecycle for one overtime request per attendance session."""

    def __init__(self, requests: OvertimeRepository, *, notifier: NotificationSink | None = None):
        self._requests = requests
        self._notifier = notifier

    def request_approval(
        self,
        *,
        worker_id: int,
        project_id: int,
        reason: str,
        now: datetime | None = None,
    ) -> int:
        now = now or now_local()
        reason = require_non_empty(reason, "Reason")
        work_date = now.date()

        existing = self._requests.get_for_session(worker_id=worker_id, project_id=project_id, work_date=work_date)
        if existing is None:
            request_id = self._requests.create_pending(
                worker_id=worker_id,
                project_id=project_id,
                work_date=work_date,
                reason=reason,
                requested_at=now,
            )
        elif existing.status is OvertimeStatus.PENDING:
            raise DuplicatePendingRequest(
                "An overtime request is already waiting for a decision",
                details={"request_id": existing.request_id},
            )
        elif existing.status is OvertimeStatus.APPROVED:
            return existing.request_id
        else:
            if not self._requests.reopen(
                request_id=existing.request_id,
                expected_status=existing.status,
                reason=reason,
                requested_at=now,
            ):
                raise ConcurrentUpdateError("Overtime request changed while being resubmitted")
            request_id = existing.request_id

        logger.info("overtime requested worker=%s project=%s request=%s", worker_id, project_id, request_id)
        notify_safely(
            self._notifier,
            "overtime.requested",
            {"request_id": request_id, "worker_id": worker_id, "project_id": project_id, "reason": reason},
        )
        return request_id

    def decide(
        self,
        *,
        request_id: int,
        decision: OvertimeDecision | str,
        approver_id: int,
        current_role: Role,
        now: datetime | None = None,
    ) -> OvertimeRequest:
        if current_role != Role.SUPERVISOR:
            raise AuthorizationError("Only supervisors can decide overtime requests")

        decision = parse_enum(OvertimeDecision, decision, "decision")
        now = now or now_local()

        req = self._requests.get(int(request_id))
        if req is None:
            raise NotFound("Overtime request not found", details={"request_id": request_id})
        if req.status is not OvertimeStatus.PENDING:
            raise NotPending(f"Overtime request was already {req.status.value}", details={"status": req.status.value})

        status = OvertimeStatus.APPROVED if decision is OvertimeDecision.APPROVE else OvertimeStatus.REJECTED
        if not self._requests.decide(request_id=req.request_id, status=status, decided_by=int(approver_id), decided_at=now):
            raise NotPending("Overtime request was decided by someone else")

        decided = self._requests.get(req.request_id)
        logger.info("overtime %s request=%s by=%s", status.value, req.request_id, approver_id)
        notify_safely(
            self._notifier,
            "overtime.decided",
            {"request_id": req.request_id, "worker_id": req.worker_id, "status": status.value, "approver_id": approver_id},
        )
        return decided

    def check_status(self, worker_id: int, project_id: int, work_date: date) -> OvertimeApprovalStatus:
        req = self._requests.get_for_session(worker_id=worker_id, project_id=project_id, work_date=work_date)
        return OvertimeApprovalStatus.from_request(req)

    def list_pending(self, *, current_role: Role, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[OvertimeRequest]:
        if current_role != Role.SUPERVISOR:
            raise AuthorizationError("Only supervisors can review overtime requests")
        return self._requests.list_pending(limit=limit)
