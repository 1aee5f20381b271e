"""
Tests for the workflow and notification repositories.

Covers:
- In-memory repositories keep instances by reference
- SQL repositories: insert, update with appended history, flush-only
  writes, shrinking history refused, ordering and filtering
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from hr_kernel.domain.workflow import (
    HistoryAction,
    NotificationEvent,
    NotificationType,
    StepRole,
    WorkflowHistoryEntry,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowType,
)
from hr_kernel.exceptions import ImmutabilityViolationError
from hr_kernel.models import WorkflowHistoryModel
from hr_kernel.persistence import (
    InMemoryNotificationRepository,
    InMemoryWorkflowRepository,
    SqlNotificationRepository,
    SqlWorkflowRepository,
)

T0 = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def _instance(workflow_id, request_id="7", branch_id=None, at=T0):
    return WorkflowInstance(
        id=workflow_id,
        workflow_type=WorkflowType.LEAVE,
        request_id=request_id,
        current_step="ops_review",
        status=WorkflowStatus.PENDING_OPS,
        submitted_by="emp-1",
        created_at=at,
        updated_at=at,
        assigned_to=StepRole.OPERATIONS,
        branch_id=branch_id,
        history=[
            WorkflowHistoryEntry(
                step_id="submit",
                action=HistoryAction.SUBMIT,
                performed_by="emp-1",
                performed_at=at,
                previous_status=WorkflowStatus.DRAFT,
                new_status=WorkflowStatus.PENDING_OPS,
            )
        ],
    )


def _approve(instance, at):
    instance.current_step = "completed"
    instance.status = WorkflowStatus.APPROVED
    instance.updated_at = at
    instance.history.append(
        WorkflowHistoryEntry(
            step_id="ops_review",
            action=HistoryAction.APPROVE,
            performed_by="ops-3",
            performed_at=at,
            previous_status=WorkflowStatus.PENDING_OPS,
            new_status=WorkflowStatus.APPROVED,
            comments="ok",
        )
    )


def _notification(notification_id, role=StepRole.OPERATIONS):
    return NotificationEvent(
        id=notification_id,
        type=NotificationType.APPROVAL,
        workflow_id="leave_7_1",
        recipient_role=role,
        title="Workflow Approved",
        message="Your workflow has been approved by ops-3.",
        created_at=T0,
    )


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class TestInMemoryRepositories:

    def test_instances_are_kept_by_reference(self):
        repo = InMemoryWorkflowRepository()
        instance = _instance("leave_7_1")
        repo.save(instance)

        assert repo.get("leave_7_1") is instance
        assert repo.exists("leave_7_1")
        assert not repo.exists("leave_7_2")

    def test_filters(self):
        repo = InMemoryWorkflowRepository()
        repo.save(_instance("a", branch_id="nairobi"))
        done = _instance("b", branch_id="mombasa")
        _approve(done, T0)
        repo.save(done)

        assert [wf.id for wf in repo.list_workflows(branch_id="nairobi")] == ["a"]
        assert [wf.id for wf in repo.list_workflows(status=WorkflowStatus.APPROVED)] == ["b"]
        assert [wf.id for wf in repo.find_by_request("leave", "7")] == ["a", "b"]
        assert repo.find_by_request(WorkflowType.SALARY_ADVANCE, "7") == []

    def test_notifications_by_role(self):
        repo = InMemoryNotificationRepository()
        repo.add(_notification("n1"))
        repo.add(_notification("n2", StepRole.HR))

        assert [n.id for n in repo.list_notifications(StepRole.HR)] == ["n2"]
        assert [n.id for n in repo.list_notifications()] == ["n1", "n2"]
        assert repo.get("n1").recipient_role == StepRole.OPERATIONS
        assert repo.get("n3") is None


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------


class TestSqlWorkflowRepository:

    def test_save_and_get_returns_fresh_copy(self, session):
        repo = SqlWorkflowRepository(session)
        instance = _instance("leave_7_1")
        repo.save(instance)

        loaded = repo.get("leave_7_1")
        assert loaded == instance
        assert loaded is not instance
        assert repo.get("missing") is None

    def test_update_appends_history(self, session):
        repo = SqlWorkflowRepository(session)
        instance = _instance("leave_7_1")
        repo.save(instance)

        loaded = repo.get("leave_7_1")
        _approve(loaded, T0 + timedelta(minutes=5))
        repo.save(loaded)
        session.expire_all()

        reloaded = repo.get("leave_7_1")
        assert reloaded.status == WorkflowStatus.APPROVED
        assert reloaded.current_step == "completed"
        assert [h.action for h in reloaded.history] == [
            HistoryAction.SUBMIT, HistoryAction.APPROVE,
        ]
        assert reloaded.history[1].comments == "ok"

        rows = session.execute(
            select(func.count()).select_from(WorkflowHistoryModel)
        ).scalar()
        assert rows == 2

    def test_saving_twice_does_not_duplicate_history(self, session):
        repo = SqlWorkflowRepository(session)
        instance = _instance("leave_7_1")
        repo.save(instance)
        repo.save(instance)

        assert len(repo.get("leave_7_1").history) == 1

    def test_shrunk_history_refused(self, session):
        repo = SqlWorkflowRepository(session)
        instance = _instance("leave_7_1")
        _approve(instance, T0)
        repo.save(instance)

        truncated = replace(instance, history=instance.history[:1])
        with pytest.raises(ImmutabilityViolationError):
            repo.save(truncated)

    def test_list_and_find(self, session):
        repo = SqlWorkflowRepository(session)
        repo.save(_instance("b", branch_id="nairobi", at=T0 + timedelta(seconds=1)))
        repo.save(_instance("a", branch_id="mombasa", at=T0))
        other = _instance("c", request_id="8", branch_id="nairobi", at=T0 + timedelta(seconds=2))
        _approve(other, other.created_at)
        repo.save(other)

        assert [wf.id for wf in repo.list_workflows()] == ["a", "b", "c"]
        assert [wf.id for wf in repo.list_workflows(branch_id="nairobi")] == ["b", "c"]
        assert [wf.id for wf in repo.list_workflows(status="approved")] == ["c"]
        assert [wf.id for wf in repo.find_by_request("leave", "7")] == ["a", "b"]
        assert repo.exists("c")


class TestSqlNotificationRepository:

    def test_creation_order_is_kept(self, session):
        repo = SqlNotificationRepository(session)
        for notification_id in ("z", "a", "m"):
            repo.add(_notification(notification_id))

        assert [n.id for n in repo.list_notifications()] == ["z", "a", "m"]

    def test_role_filter(self, session):
        repo = SqlNotificationRepository(session)
        repo.add(_notification("n1"))
        repo.add(_notification("n2", StepRole.HR))

        assert [n.id for n in repo.list_notifications(StepRole.HR)] == ["n2"]

    def test_save_persists_read_flag(self, session):
        repo = SqlNotificationRepository(session)
        repo.add(_notification("n1"))

        note = repo.get("n1")
        note.read = True
        repo.save(note)
        session.expire_all()

        assert repo.get("n1").read is True
