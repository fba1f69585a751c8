"""
Emissão e verificação dos tokens de sessão (JWT HS256).

- access: {userId, email, role}, vida curta (ACCESS_TOKEN_EXPIRE_MINUTES)
- refresh: {userId, jti}, vida longa (REFRESH_TOKEN_EXPIRE_DAYS), persistido em refresh_tokens

Os tokens são só assinados, não cifrados: nunca colocar segredos no payload.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from .config import get_settings
from .errors import ExpiredToken, InvalidToken
from .records import Role

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True, slots=True)
class AccessClaims:
    user_id: str
    email: str
    role: Role
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    user_id: str
    jti: str
    expires_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


def access_expiry(now: datetime | None = None) -> datetime:
    return (now or _now()) + timedelta(minutes=get_settings().ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_expiry(now: datetime | None = None) -> datetime:
    return (now or _now()) + timedelta(days=get_settings().REFRESH_TOKEN_EXPIRE_DAYS)


def issue_access(user_id: str, email: str, role: Role | str, now: datetime | None = None) -> str:
    settings = get_settings()
    now = now or _now()
    payload = {
        "userId": str(user_id),
        "email": email,
        "role": Role.parse(role).value,
        "type": ACCESS,
        "iat": int(now.timestamp()),
        "exp": int(access_expiry(now).timestamp()),
    }
    return jwt.encode(payload, settings.APP_SECRET, algorithm=ALGORITHM)


def issue_refresh(user_id: str, now: datetime | None = None) -> tuple[str, datetime]:
    """Devolve o token e o instante de expiração, que também vai para o banco."""
    settings = get_settings()
    now = now or _now()
    exp = refresh_expiry(now)
    payload = {
        "userId": str(user_id),
        "type": REFRESH,
        # dois logins no mesmo segundo não podem gerar o mesmo token (coluna unique)
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.refresh_secret, algorithm=ALGORITHM), exp


def _decode(token: str, secret: str, expected_type: str) -> dict:
    if not token:
        raise InvalidToken("token vazio")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise ExpiredToken(str(e)) from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken(str(e)) from e

    if payload.get("type") != expected_type:
        raise InvalidToken(f"tipo de token incorreto: {payload.get('type')!r}")
    if not payload.get("userId"):
        raise InvalidToken("token sem userId")
    return payload


def verify_access(token: str) -> AccessClaims:
    payload = _decode(token, get_settings().APP_SECRET, ACCESS)
    return AccessClaims(
        user_id=str(payload["userId"]),
        email=str(payload.get("email") or ""),
        role=Role.parse(payload.get("role")),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def verify_refresh(token: str) -> RefreshClaims:
    payload = _decode(token, get_settings().refresh_secret, REFRESH)
    return RefreshClaims(
        user_id=str(payload["userId"]),
        jti=str(payload.get("jti") or ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
