"""Tests for the task service: access gate, persistence and concurrency."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from taskhub.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StaleTaskError,
    ValidationError,
)
from taskhub.crud.task import task as task_crud
from taskhub.database import AsyncSessionLocal
from taskhub.engine import TaskChanges, TaskStatus
from taskhub.models.task import Task
from taskhub.schemas.task import TaskCreate
from taskhub.services.access_service import access_service
from taskhub.services.project_service import project_service
from taskhub.schemas.project import ProjectCreate, ProjectMemberCreate
from taskhub.services.task_service import task_service


@pytest.mark.asyncio
async def test_create_task_persists_history(db_session, project, owner):
    created = await task_service.create_task(
        db_session,
        task_in=TaskCreate(title="Plan sprint", project_id=project.id, assignee_id=owner.id),
        actor_id=owner.id,
    )

    assert created.id is not None
    assert created.status == TaskStatus.TODO
    assert created.version == 1
    assert created.created_by == owner.id
    assert created.updated_at is None

    history = await task_service.get_history(db_session, task_id=created.id, actor_id=owner.id)
    assert [(h.field_name, h.old_value, h.new_value) for h in history] == [
        ("Status", None, "Todo"),
        ("Assignee", "Unassigned", str(owner.id)),
    ]


@pytest.mark.asyncio
async def test_create_task_in_missing_project(db_session, owner):
    with pytest.raises(NotFoundError) as exc_info:
        await task_service.create_task(
            db_session, task_in=TaskCreate(title="Orphan", project_id=999), actor_id=owner.id
        )
    assert exc_info.value.entity_type == "Project"


@pytest.mark.asyncio
async def test_outsider_is_denied(db_session, task, outsider):
    with pytest.raises(AccessDeniedError):
        await task_service.change_status(
            db_session, task_id=task.id, new_status=TaskStatus.IN_PROGRESS, actor_id=outsider.id
        )

    reloaded = await task_crud.get_active(db_session, task_id=task.id)
    assert reloaded.status == TaskStatus.TODO


@pytest.mark.asyncio
async def test_member_gets_access(db_session, project, task, owner, outsider):
    await project_service.add_member(
        db_session,
        project_id=project.id,
        member_in=ProjectMemberCreate(user_id=outsider.id),
        actor_id=owner.id,
    )

    assert await access_service.has_access(db_session, project.id, outsider.id)
    updated = await task_service.change_status(
        db_session, task_id=task.id, new_status=TaskStatus.IN_PROGRESS, actor_id=outsider.id
    )
    assert updated.status == TaskStatus.IN_PROGRESS
    assert updated.updated_by == outsider.id


@pytest.mark.asyncio
async def test_public_project_is_open(db_session, owner, outsider):
    public = await project_service.create_project(
        db_session, project_in=ProjectCreate(name="Open source", is_public=True), actor_id=owner.id
    )
    assert await access_service.has_access(db_session, public.id, outsider.id)


@pytest.mark.asyncio
async def test_missing_task(db_session, owner):
    with pytest.raises(NotFoundError) as exc_info:
        await task_service.get_task(db_session, task_id=12345, actor_id=owner.id)
    assert exc_info.value.entity_type == "Task"


@pytest.mark.asyncio
async def test_progress_completes_and_bumps_version(db_session, task, owner):
    done = await task_service.update_progress(db_session, task_id=task.id, progress=100, actor_id=owner.id)

    assert done.status == TaskStatus.DONE
    assert done.completed_at is not None
    assert done.version == 2

    history = await task_service.get_history(db_session, task_id=task.id, actor_id=owner.id)
    assert [h.field_name for h in history][-2:] == ["Status", "Progress"]


@pytest.mark.asyncio
async def test_invalid_transition_leaves_row_untouched(db_session, task, owner):
    with pytest.raises(InvalidTransitionError) as exc_info:
        await task_service.change_status(
            db_session, task_id=task.id, new_status=TaskStatus.DONE, actor_id=owner.id
        )
    assert exc_info.value.status_code == 400

    history = await task_service.get_history(db_session, task_id=task.id, actor_id=owner.id)
    assert len(history) == 1


@pytest.mark.asyncio
async def test_expected_version_mismatch(db_session, task, owner):
    with pytest.raises(ConflictError) as exc_info:
        await task_service.block_task(
            db_session, task_id=task.id, reason="Waiting", actor_id=owner.id, expected_version=7
        )
    assert not isinstance(exc_info.value, StaleTaskError)
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_stale_write_detected_on_save(db_session, task, owner):
    loaded = await task_crud.get_active(db_session, task_id=task.id)
    state = task_crud.to_state(loaded)

    # Another writer bumps the row version behind the session's back
    await db_session.execute(
        update(Task.__table__).where(Task.__table__.c.id == task.id).values(version=5)
    )

    with pytest.raises(StaleTaskError):
        await task_crud.save(
            db_session,
            db_obj=loaded,
            state=state.model_copy(update={"title": "Changed"}),
            history=[],
        )


@pytest.mark.asyncio
async def test_stale_write_is_retried(db_session, task, owner, monkeypatch):
    real_save = task_crud.save
    calls = []

    async def flaky_save(db, **kwargs):
        calls.append(kwargs["state"].version)
        if len(calls) == 1:
            raise StaleTaskError(task.id)
        return await real_save(db, **kwargs)

    monkeypatch.setattr(task_crud, "save", flaky_save)

    updated = await task_service.assign_task(
        db_session, task_id=task.id, assignee_id=owner.id, actor_id=owner.id
    )

    assert len(calls) == 2
    assert updated.assignee_id == owner.id


@pytest.mark.asyncio
async def test_stale_write_gives_up(db_session, task, owner, monkeypatch):
    async def always_stale(db, **kwargs):
        raise StaleTaskError(task.id)

    monkeypatch.setattr(task_crud, "save", always_stale)

    with pytest.raises(StaleTaskError):
        await task_service.unblock_task(db_session, task_id=task.id, actor_id=owner.id)


@pytest.mark.asyncio
async def test_update_task_batch(db_session, task, owner):
    updated = await task_service.update_task(
        db_session,
        task_id=task.id,
        changes=TaskChanges(title="Write landing copy", status=TaskStatus.IN_PROGRESS, tags="copy,web"),
        actor_id=owner.id,
        expected_version=1,
    )

    assert updated.title == "Write landing copy"
    assert updated.status == TaskStatus.IN_PROGRESS
    assert updated.version == 2

    history = await task_service.get_history(db_session, task_id=task.id, actor_id=owner.id)
    assert [h.field_name for h in history] == ["Status", "Title", "Status", "Tags"]


@pytest.mark.asyncio
async def test_unknown_assignee_rejected(db_session, task, owner):
    with pytest.raises(ValidationError) as exc_info:
        await task_service.assign_task(db_session, task_id=task.id, assignee_id=4242, actor_id=owner.id)
    assert exc_info.value.field == "Assignee"


@pytest.mark.asyncio
async def test_subtasks_and_parent_rules(db_session, project, task, owner):
    child = await task_service.create_task(
        db_session,
        task_in=TaskCreate(title="Draft headline", project_id=project.id, parent_task_id=task.id),
        actor_id=owner.id,
    )
    assert child.parent_task_id == task.id

    subtasks = await task_service.list_subtasks(db_session, task_id=task.id, actor_id=owner.id)
    assert [s.id for s in subtasks] == [child.id]

    with pytest.raises(ValidationError):
        await task_service.create_task(
            db_session,
            task_in=TaskCreate(title="Too deep", project_id=project.id, parent_task_id=child.id),
            actor_id=owner.id,
        )

    other = await task_service.create_task(
        db_session, task_in=TaskCreate(title="Another", project_id=project.id), actor_id=owner.id
    )
    with pytest.raises(ValidationError):
        await task_service.update_task(
            db_session,
            task_id=task.id,
            changes=TaskChanges(),
            actor_id=owner.id,
            parent_task_id=other.id,
            set_parent=True,
        )


@pytest.mark.asyncio
async def test_soft_delete_hides_task_and_keeps_subtasks(db_session, project, task, owner):
    child = await task_service.create_task(
        db_session,
        task_in=TaskCreate(title="Child", project_id=project.id, parent_task_id=task.id),
        actor_id=owner.id,
    )

    await task_service.delete_task(db_session, task_id=task.id, actor_id=owner.id)

    with pytest.raises(NotFoundError):
        await task_service.get_task(db_session, task_id=task.id, actor_id=owner.id)
    still_there = await task_service.get_task(db_session, task_id=child.id, actor_id=owner.id)
    assert still_there.deleted_at is None

    items, total = await task_service.list_project_tasks(db_session, project_id=project.id, actor_id=owner.id)
    assert total == 1
    assert [t.id for t in items] == [child.id]


@pytest.mark.asyncio
async def test_restore_requires_permission(db_session, task, owner, admin_user, project):
    await task_service.delete_task(db_session, task_id=task.id, actor_id=owner.id)

    with pytest.raises(ForbiddenError):
        await task_service.restore_task(db_session, task_id=task.id, actor=owner)

    await project_service.add_member(
        db_session,
        project_id=project.id,
        member_in=ProjectMemberCreate(user_id=admin_user.id),
        actor_id=owner.id,
    )
    restored = await task_service.restore_task(db_session, task_id=task.id, actor=admin_user)
    assert restored.deleted_at is None

    history = await task_service.get_history(db_session, task_id=task.id, actor_id=owner.id)
    assert [(h.old_value, h.new_value) for h in history if h.field_name == "IsDeleted"] == [
        ("false", "true"),
        ("true", "false"),
    ]


@pytest.mark.asyncio
async def test_list_filters_and_sorting(db_session, project, owner):
    for title, priority in [("Alpha", "Low"), ("Bravo", "Critical"), ("Charlie", "High")]:
        await task_service.create_task(
            db_session,
            task_in=TaskCreate(title=title, project_id=project.id, priority=priority),
            actor_id=owner.id,
        )

    items, total = await task_service.list_project_tasks(
        db_session, project_id=project.id, actor_id=owner.id, sort_by="priority", descending=False
    )
    assert total == 3
    assert [t.title for t in items] == ["Bravo", "Charlie", "Alpha"]

    items, total = await task_service.list_project_tasks(
        db_session, project_id=project.id, actor_id=owner.id, search="rav"
    )
    assert [t.title for t in items] == ["Bravo"]

    items, total = await task_service.list_project_tasks(
        db_session, project_id=project.id, actor_id=owner.id, sort_by="title", descending=False, page=2, page_size=2
    )
    assert total == 3
    assert [t.title for t in items] == ["Charlie"]


@pytest.mark.asyncio
async def test_concurrent_write_is_retried_from_fresh_row(db_session, task, owner, monkeypatch):
    task_id, owner_id = task.id, owner.id
    real_save = task_crud.save
    calls = []

    async def save_after_other_writer(db, **kwargs):
        calls.append(kwargs["db_obj"].version)
        if len(calls) == 1:
            async with AsyncSessionLocal() as other:
                row = await other.get(Task, task_id)
                row.title = "Edited elsewhere"
                await other.commit()
        return await real_save(db, **kwargs)

    monkeypatch.setattr(task_crud, "save", save_after_other_writer)

    updated = await task_service.assign_task(
        db_session, task_id=task_id, assignee_id=owner_id, actor_id=owner_id
    )

    assert calls == [1, 2]
    assert updated.title == "Edited elsewhere"
    assert updated.assignee_id == owner_id
    assert updated.version == 3

    history = await task_service.get_history(db_session, task_id=task_id, actor_id=owner_id)
    assert [h.field_name for h in history].count("Assignee") == 1


@pytest.mark.asyncio
async def test_parent_only_update_stamps_current_time(db_session, project, task, owner):
    parent = await task_service.create_task(
        db_session, task_in=TaskCreate(title="Launch", project_id=project.id), actor_id=owner.id
    )
    await task_service.update_task(
        db_session, task_id=task.id, changes=TaskChanges(title="Rewrite copy"), actor_id=owner.id
    )
    task_id, parent_id, owner_id = task.id, parent.id, owner.id

    await db_session.execute(
        update(Task.__table__)
        .where(Task.__table__.c.id == task_id)
        .values(updated_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
    )
    await db_session.commit()
    db_session.expire_all()

    moved = await task_service.update_task(
        db_session,
        task_id=task_id,
        changes=TaskChanges(),
        actor_id=owner_id,
        parent_task_id=parent_id,
        set_parent=True,
    )

    assert moved.parent_task_id == parent_id
    assert moved.updated_at.year > 2020

    history = await task_service.get_history(db_session, task_id=task_id, actor_id=owner_id)
    assert history[-1].field_name == "ParentTask"
    assert history[-1].changed_at.year > 2020
