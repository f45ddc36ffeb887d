from __future__ import annotations

import pytest

from site_workforce.core.enums import OvertimeStatus, Role
from site_workforce.core.exceptions import (
    AuthorizationError,
    DuplicatePendingRequest,
    InvalidInput,
    NotFound,
    NotPending,
)
from support import WORK_DAY, on_day

WORKER = 7
PROJECT = 1
SUPERVISOR = 2


@pytest.fixture
def manager(container):
    return container.overtime_manager


def _request(manager, reason="Slab pour must finish today", at=None):
    return manager.request_approval(worker_id=WORKER, project_id=PROJECT, reason=reason, now=at or on_day(15, 0))


def _decide(manager, request_id, decision="approve", role=Role.SUPERVISOR):
    return manager.decide(
        request_id=request_id,
        decision=decision,
        approver_id=SUPERVISOR,
        current_role=role,
        now=on_day(16, 0),
    )


def test_no_request_means_status_none(manager):
    status = manager.check_status(WORKER, PROJECT, WORK_DAY)

    assert status.status is OvertimeStatus.NONE
    assert status.is_approved is False


def test_request_creates_pending(manager, notifier):
    request_id = _request(manager)
    status = manager.check_status(WORKER, PROJECT, WORK_DAY)

    assert status.status is OvertimeStatus.PENDING
    assert status.request_id == request_id
    assert status.requested_reason == "Slab pour must finish today"
    assert notifier.names() == ["overtime.requested"]


def test_second_pending_request_is_rejected(manager):
    _request(manager)

    with pytest.raises(DuplicatePendingRequest):
        _request(manager, at=on_day(15, 30))


def test_blank_reason_is_rejected(manager):
    with pytest.raises(InvalidInput):
        _request(manager, reason="   ")


def test_supervisor_approves(manager, notifier):
    request_id = _request(manager)
    decided = _decide(manager, request_id)

    assert decided.status is OvertimeStatus.APPROVED
    assert decided.decided_by == SUPERVISOR
    status = manager.check_status(WORKER, PROJECT, WORK_DAY)
    assert status.is_approved is True
    assert status.approved_by == SUPERVISOR
    assert status.approved_at == on_day(16, 0)
    assert notifier.names()[-1] == "overtime.decided"


def test_worker_cannot_decide(manager):
    request_id = _request(manager)

    with pytest.raises(AuthorizationError):
        _decide(manager, request_id, role=Role.WORKER)

    assert manager.check_status(WORKER, PROJECT, WORK_DAY).status is OvertimeStatus.PENDING


def test_decision_is_final(manager):
    request_id = _request(manager)
    _decide(manager, request_id, "reject")

    with pytest.raises(NotPending):
        _decide(manager, request_id, "approve")


def test_unknown_request(manager):
    with pytest.raises(NotFound):
        _decide(manager, 404)


def test_unknown_decision(manager):
    request_id = _request(manager)

    with pytest.raises(InvalidInput):
        _decide(manager, request_id, "maybe")


def test_rejected_request_can_be_resubmitted(manager):
    request_id = _request(manager)
    _decide(manager, request_id, "reject")

    again = _request(manager, reason="Crane was late, need two more hours", at=on_day(17, 0))
    status = manager.check_status(WORKER, PROJECT, WORK_DAY)

    assert again == request_id
    assert status.status is OvertimeStatus.PENDING
    assert status.requested_reason == "Crane was late, need two more hours"
    assert status.approved_by is None


def test_request_after_approval_returns_existing(manager):
    request_id = _request(manager)
    _decide(manager, request_id)

    assert _request(manager, at=on_day(18, 0)) == request_id
    assert manager.check_status(WORKER, PROJECT, WORK_DAY).is_approved is True


def test_lost_decision_race(manager, overtime_repo):
    request_id = _request(manager)
    overtime_repo.lose_next_decision = True

    with pytest.raises(NotPending):
        _decide(manager, request_id)


def test_list_pending_is_supervisor_only(manager):
    first = _request(manager)
    other = manager.request_approval(worker_id=8, project_id=PROJECT, reason="Formwork", now=on_day(15, 5))

    with pytest.raises(AuthorizationError):
        manager.list_pending(current_role=Role.WORKER)

    pending = manager.list_pending(current_role=Role.SUPERVISOR)
    assert [r.request_id for r in pending] == [first, other]
