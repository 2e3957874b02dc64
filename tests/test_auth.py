"""Tests for authentication."""
import pytest
from taskhub.services.auth_service import AuthService
from taskhub.utils.security import verify_password, create_access_token, create_refresh_token, decode_token

API = "/api/v1"


def test_password_hashing():
    """Test password hashing and verification."""
    password = "testpassword123"
    hashed = AuthService.hash_password(password)

    assert hashed != password
    assert verify_password(password, hashed)
    assert not verify_password("wrongpassword", hashed)


def test_jwt_token_creation():
    """Test JWT token creation and decoding."""
    token = create_access_token({"sub": "42", "email": "test@example.com"})

    decoded = decode_token(token)
    assert decoded["sub"] == "42"
    assert decoded["type"] == "access"

    with pytest.raises(ValueError):
        decode_token(token + "tampered")


@pytest.mark.asyncio
async def test_authenticate_user(db_session, owner):
    """Test user authentication."""
    user = await AuthService.authenticate_user(db_session, "owner@example.com", "testpassword")
    assert user is not None
    assert user.last_login_at is not None

    assert await AuthService.authenticate_user(db_session, "owner@example.com", "wrongpassword") is None
    assert await AuthService.authenticate_user(db_session, "nobody@example.com", "password") is None


@pytest.mark.asyncio
async def test_register_login_and_me(client, roles):
    response = await client.post(
        f"{API}/auth/register",
        json={"email": "dev@example.com", "username": "dev", "password": "s3cretpass"},
    )
    assert response.status_code == 201
    assert [role["name"] for role in response.json()["roles"]] == ["member"]

    response = await client.post(
        f"{API}/auth/register",
        json={"email": "dev@example.com", "username": "dev2", "password": "s3cretpass"},
    )
    assert response.status_code == 409

    response = await client.post(
        f"{API}/auth/login", data={"username": "dev@example.com", "password": "s3cretpass"}
    )
    assert response.status_code == 200
    tokens = response.json()

    response = await client.get(
        f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
    )
    assert response.status_code == 200
    assert response.json()["username"] == "dev"

    response = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["access_token"]


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, owner):
    response = await client.post(f"{API}/auth/login", data={"username": owner.email, "password": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, owner):
    access = create_access_token({"sub": str(owner.id)})
    response = await client.post(f"{API}/auth/refresh", json={"refresh_token": access})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_token(client, owner):
    refresh = create_refresh_token({"sub": str(owner.id)})
    response = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_users_listing_requires_permission(client, auth_headers, headers_for, make_user):
    response = await client.get(f"{API}/users", headers=auth_headers)
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["owner"]

    guest = await make_user("visitor", role="guest")
    response = await client.get(f"{API}/users", headers=headers_for(guest))
    assert response.status_code == 403
