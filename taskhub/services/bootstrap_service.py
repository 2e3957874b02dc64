"""Startup seeding of the built-in roles and the administrator account."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.core.security import ROLE_PERMISSIONS
from taskhub.models.user import Role, User
from taskhub.services.auth_service import AuthService

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    "admin": "Administrator with full access",
    "member": "Regular user who can create projects",
    "guest": "Access to public projects only",
}

ADMIN_USERNAME = "admin"


async def ensure_roles(db: AsyncSession, *, role_names: Iterable[str]) -> Dict[str, Role]:
    """Create missing built-in roles and bring their permission lists up to date.

    Returns the roles keyed by name.
    """
    names = list(role_names)
    result = await db.execute(select(Role).where(Role.name.in_(names)))
    existing = {role_obj.name: role_obj for role_obj in result.scalars().all()}

    dirty = False
    for role_name in names:
        permissions = sorted(permission.value for permission in ROLE_PERMISSIONS.get(role_name, []))
        role_obj = existing.get(role_name)
        if role_obj is None:
            role_obj = Role(
                name=role_name,
                permissions=permissions,
                description=ROLE_DESCRIPTIONS.get(role_name),
            )
            db.add(role_obj)
            existing[role_name] = role_obj
            dirty = True
            logger.info(f"Created role {role_name}")
        elif sorted(role_obj.permissions or []) != permissions:
            role_obj.permissions = permissions
            dirty = True
            logger.info(f"Updated permissions of role {role_name}")

    if dirty:
        await db.commit()

    return {name: existing[name] for name in names}


async def ensure_default_admin(
    db: AsyncSession,
    *,
    role_map: Optional[Dict[str, Role]] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> User:
    """Make sure the configured administrator exists and holds the admin role."""
    if role_map is None or "admin" not in role_map:
        role_map = await ensure_roles(db, role_names=["admin"])
    admin_role = role_map["admin"]
    email = email or settings.DEFAULT_ADMIN_EMAIL

    result = await db.execute(select(User).where(User.email == email))
    admin_user = result.scalar_one_or_none()

    if admin_user is None:
        admin_user = User(
            email=email,
            username=ADMIN_USERNAME,
            full_name="Administrator",
            password_hash=AuthService.hash_password(password or settings.DEFAULT_ADMIN_PASSWORD),
        )
        admin_user.roles = [admin_role]
        db.add(admin_user)
        logger.info(f"Created administrator {email}")
    elif admin_role not in admin_user.roles:
        admin_user.roles.append(admin_role)
    else:
        return admin_user

    await db.commit()
    await db.refresh(admin_user)
    return admin_user
