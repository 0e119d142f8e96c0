"""Credential store over the ``users`` collection.

Soft-deleted accounts (``active == False``) are invisible to every query
unless the caller passes ``include_inactive=True``, which only admin paths do.
"""

from __future__ import annotations

import logging
from typing import Optional

from bson.objectid import ObjectId
from mongoengine.queryset import QuerySet
from pydantic import BaseModel

from speechable.models.user import User
from speechable.utils.base.enums import AuthProvider


logger = logging.getLogger(__name__)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    name: str | None = None
    email: str | None = None


class AdminUserUpdate(ProfileUpdate):
    role: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _users(include_inactive: bool = False) -> QuerySet:
    if include_inactive:
        return User.objects
    return User.objects(active__ne=False)


def find_by_email(email: str, include_inactive: bool = False) -> Optional[User]:
    if not email:
        return None
    return _users(include_inactive)(email=normalize_email(email)).first()


def find_by_id(user_id: str, include_inactive: bool = False) -> Optional[User]:
    if not user_id or not ObjectId.is_valid(str(user_id)):
        return None
    return _users(include_inactive)(id=user_id).first()


def list_users(include_inactive: bool = False) -> list[User]:
    return list(_users(include_inactive).order_by("created_at"))


def create_user(
    name: str | None,
    email: str | None,
    password: str | None,
    password_confirm: str | None,
    auth_provider: AuthProvider = AuthProvider.PASSWORD,
) -> User:
    """Validate, hash and persist a new account.

    Password rules are checked before anything is written, so a rejected
    signup leaves no document behind.
    """
    user = User(name=name, email=email, auth_provider=auth_provider.value)
    user.set_password(password, password_confirm)
    user.save()
    logger.info("Created user %s (%s)", user.id, auth_provider.value)
    return user


def update_by_id(user_id: str, update: ProfileUpdate, include_inactive: bool = False) -> Optional[User]:
    user = find_by_id(user_id, include_inactive=include_inactive)
    if not user:
        return None
    changes = update.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)
    if changes:
        user.save()
    return user


def deactivate(user_id: str) -> bool:
    """Soft-delete a user. Returns False when no such account exists."""
    if not ObjectId.is_valid(str(user_id)):
        return False
    updated = User.objects(id=user_id).update_one(set__active=False)
    if updated:
        logger.info("Deactivated user %s", user_id)
    return bool(updated)
