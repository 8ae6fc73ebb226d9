# src/db/accounts.py
from __future__ import annotations

import dataclasses
import hashlib
import json
from typing import Optional

from db import storage
from db.database import connect
from db.models import User
from utils.errors import AuthError
from utils.logger import get_logger

_logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid credentials. Please try again."

_USER_COLUMNS = "id, first_name, last_name, email, phone, avatar"
_EDITABLE_FIELDS = {"first_name", "last_name", "email", "phone", "avatar"}


def _hash_password(pwd: str) -> str:
    return hashlib.sha256(pwd.encode("utf-8")).hexdigest()


def _row_to_user(row) -> User:
    return User(
        id=row[0],
        first_name=row[1],
        last_name=row[2],
        email=row[3],
        phone=row[4],
        avatar=row[5],
    )


async def _remember(user: User) -> None:
    await storage.set_item(
        storage.USER_STORAGE_KEY, json.dumps(dataclasses.asdict(user), ensure_ascii=False)
    )


# ---------------------------
# Lookups
# ---------------------------


async def email_available(email: str) -> bool:
    """True if no account is registered with the given email (case-insensitive)."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT 1 FROM users WHERE email = ? COLLATE NOCASE LIMIT 1;",
            (email.strip(),),
        )
        row = await cur.fetchone()
        await cur.close()
    return row is None


async def get_user(user_id: str) -> Optional[User]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?;", (user_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_user(row) if row else None


# ---------------------------
# Auth & Registration
# ---------------------------


async def login(email: str, password: str) -> User:
    """
    Check email/password and remember the user as the signed-in one.
    Raises AuthError with a displayable message on failure.
    """
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_USER_COLUMNS}, pwd_hash FROM users WHERE email = ? COLLATE NOCASE;",
            (email.strip(),),
        )
        row = await cur.fetchone()
        await cur.close()

    if not row or row[6] != _hash_password(password):
        _logger.info(f"Failed login for {email!r}")
        raise AuthError(INVALID_CREDENTIALS)

    user = _row_to_user(row)
    await _remember(user)
    _logger.info(f"User {user.id} signed in")
    return user


async def register(first_name: str, last_name: str, email: str, password: str) -> User:
    """
    Create an account. The new user is NOT signed in afterwards.
    """
    first_name, last_name, email = first_name.strip(), last_name.strip(), email.strip()
    if not first_name or not last_name or not email:
        raise AuthError("Make sure all fields are filled.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    if not await email_available(email):
        raise AuthError("This email address is already in use.")

    async with connect() as conn:
        cur = await conn.execute("SELECT COUNT(*) FROM users;")
        count = (await cur.fetchone())[0]
        await cur.close()

        # ids follow the "user-<n>" pattern of the seed accounts
        n = count + 1
        while True:
            user_id = f"user-{n}"
            cur = await conn.execute("SELECT 1 FROM users WHERE id = ?;", (user_id,))
            exists = await cur.fetchone()
            await cur.close()
            if not exists:
                break
            n += 1

        user = User(
            id=user_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            avatar=f"https://api.dicebear.com/7.x/avataaars/svg?seed={first_name.lower()}",
        )
        await conn.execute(
            "INSERT INTO users(id, first_name, last_name, email, phone, avatar, pwd_hash)"
            " VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                user.id,
                user.first_name,
                user.last_name,
                user.email,
                user.phone,
                user.avatar,
                _hash_password(password),
            ),
        )
        await conn.commit()

    _logger.info(f"Registered {user.id}")
    return user


async def logout() -> None:
    await storage.remove_item(storage.USER_STORAGE_KEY)


async def get_current_user() -> Optional[User]:
    """Return the remembered user; unreadable data is dropped and None returned."""
    raw = await storage.get_item(storage.USER_STORAGE_KEY)
    if not raw:
        return None
    try:
        data = json.loads(raw)
        return User(**{f.name: data.get(f.name) for f in dataclasses.fields(User)})
    except (ValueError, TypeError, AttributeError):
        _logger.warning("Discarding unreadable signed-in user record")
        await storage.remove_item(storage.USER_STORAGE_KEY)
        return None


async def is_authenticated() -> bool:
    return await get_current_user() is not None


async def update_user_profile(**changes) -> User:
    """
    Update profile fields of the signed-in user and return the new record.
    Only first_name, last_name, email, phone and avatar can be changed.
    """
    user = await get_current_user()
    if user is None:
        raise AuthError("You are not signed in.")

    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    if "email" in changes:
        email = (changes["email"] or "").strip()
        if not email:
            raise AuthError("Email cannot be empty.")
        if email.lower() != user.email.lower() and not await email_available(email):
            raise AuthError("This email address is already in use.")
        changes["email"] = email

    updated = dataclasses.replace(user, **changes)
    async with connect() as conn:
        await conn.execute(
            "UPDATE users SET first_name = ?, last_name = ?, email = ?, phone = ?, avatar = ?"
            " WHERE id = ?;",
            (
                updated.first_name,
                updated.last_name,
                updated.email,
                updated.phone,
                updated.avatar,
                updated.id,
            ),
        )
        await conn.commit()

    await _remember(updated)
    return updated
