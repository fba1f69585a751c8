"""Registros tipados montados uma única vez na fronteira do banco."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        try:
            return cls((value or cls.USER.value).strip().lower())
        except ValueError:
            return cls.USER


def utcnow() -> datetime:
    # DateTime sem timezone no banco: tudo é UTC "naive"
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass(frozen=True, slots=True)
class UserRecord:
    id: str
    name: str
    email: str
    role: Role
    avatar_url: str | None = None
    password_hash: str = field(default="", repr=False)

    @classmethod
    def from_row(cls, row) -> "UserRecord":
        return cls(
            id=str(row.id),
            name=row.name or "",
            email=row.email,
            role=Role.parse(row.role),
            avatar_url=row.avatar_url,
            password_hash=row.password_hash or "",
        )

    def public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "avatar_url": self.avatar_url,
        }


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    id: str
    user_id: str
    token: str = field(repr=False)
    expires_at: datetime
    is_revoked: bool
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row) -> "RefreshTokenRecord":
        return cls(
            id=str(row.id),
            user_id=str(row.user_id),
            token=row.token,
            expires_at=as_naive_utc(row.expires_at),
            is_revoked=bool(row.is_revoked),
            created_at=row.created_at,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= as_naive_utc(now or utcnow())
