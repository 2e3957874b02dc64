"""Tests for startup seeding."""
import pytest

from taskhub.core.security import ROLE_PERMISSIONS, Permission
from taskhub.services.bootstrap_service import ensure_default_admin, ensure_roles
from taskhub.utils.permissions import has_permission
from taskhub.utils.security import verify_password


@pytest.mark.asyncio
async def test_ensure_roles_refreshes_stale_permissions(db_session, roles):
    roles["member"].permissions = []
    await db_session.commit()

    refreshed = await ensure_roles(db_session, role_names=ROLE_PERMISSIONS.keys())

    assert set(refreshed) == set(ROLE_PERMISSIONS)
    assert refreshed["member"].id == roles["member"].id
    assert Permission.PROJECT_CREATE.value in refreshed["member"].permissions


@pytest.mark.asyncio
async def test_default_admin_created_once(db_session, roles):
    admin = await ensure_default_admin(
        db_session, role_map=roles, email="root@example.com", password="s3cret!"
    )
    again = await ensure_default_admin(db_session, role_map=roles, email="root@example.com")

    assert again.id == admin.id
    assert admin.username == "admin"
    assert verify_password("s3cret!", admin.password_hash)
    assert has_permission(admin, Permission.TASK_RESTORE)
