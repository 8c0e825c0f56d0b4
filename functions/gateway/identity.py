"""
Identity provider abstraction for Firebase Auth and in-memory testing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol

from firebase_admin import auth


class IdentityExistsError(Exception):
    """An identity with this email is already registered."""


class IdentityNotFoundError(Exception):
    """No identity is registered for this email."""


@dataclass(frozen=True)
class IdentityRecord:
    uid: str
    email: str


class IdentityStore(Protocol):
    """Operations the gateway needs from the identity provider."""

    def create_user(self, email: str) -> IdentityRecord:
        ...

    def get_user_by_email(self, email: str) -> IdentityRecord:
        ...

    def delete_user(self, uid: str) -> None:
        ...


@dataclass
class InMemoryIdentityStore:
    """Test double for identity provider interactions."""

    users: Dict[str, IdentityRecord] = field(default_factory=dict)

    def create_user(self, email: str) -> IdentityRecord:
        if any(user.email == email for user in self.users.values()):
            raise IdentityExistsError(email)
        record = IdentityRecord(uid=uuid.uuid4().hex[:28], email=email)
        self.users[record.uid] = record
        return record

    def get_user_by_email(self, email: str) -> IdentityRecord:
        for user in self.users.values():
            if user.email == email:
                return user
        raise IdentityNotFoundError(email)

    def delete_user(self, uid: str) -> None:
        self.users.pop(uid, None)


class FirebaseIdentityStore:
    """Firebase Authentication backed identity store."""

    def __init__(self, app: Any = None):
        self._app = app

    def create_user(self, email: str) -> IdentityRecord:
        try:
            user = auth.create_user(email=email, app=self._app)
        except auth.EmailAlreadyExistsError as exc:
            raise IdentityExistsError(email) from exc
        return IdentityRecord(uid=user.uid, email=user.email)

    def get_user_by_email(self, email: str) -> IdentityRecord:
        try:
            user = auth.get_user_by_email(email, app=self._app)
        except auth.UserNotFoundError as exc:
            raise IdentityNotFoundError(email) from exc
        return IdentityRecord(uid=user.uid, email=user.email)

    def delete_user(self, uid: str) -> None:
        auth.delete_user(uid, app=self._app)
