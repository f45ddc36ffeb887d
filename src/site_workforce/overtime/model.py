from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import OvertimeStatus


@dataclass(frozen=True)
class OvertimeRequest:
    request_id: int
    worker_id: int
    project_id: int
    work_date: date
    status: OvertimeStatus
    reason: str
    requested_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None


@dataclass(frozen=True)
class OvertimeApprovalStatus:
    """Read projection of a session's overtime request."""

    status: OvertimeStatus
    request_id: Optional[int] = None
    requested_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None

    @property
    def is_approved(self) -> bool:
        return self.status is OvertimeStatus.APPROVED

    @classmethod
    def from_request(cls, req: Optional[OvertimeRequest]) -> "OvertimeApprovalStatus":
        if req is None:
            return cls(status=OvertimeStatus.NONE)
        return cls(
            status=req.status,
            request_id=req.request_id,
            requested_reason=req.reason,
            approved_by=req.decided_by,
            approved_at=req.decided_at,
        )

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "request_id": self.request_id,
            "requested_reason": self.requested_reason,
            "approved_by": self.approved_by,
            "approved_at": isoformat_or_none(self.approved_at),
        }
