"""
Session Store: refresh tokens emitidos, um registro por login.

Não há deduplicação por usuário (várias abas/dispositivos convivem) e nenhum
fluxo marca is_revoked; a revogação é o DELETE feito no logout.
"""
import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .db import guarded
from .models.refresh_token import RefreshToken
from .records import RefreshTokenRecord, as_naive_utc, utcnow

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, token: str, expires_at: datetime) -> RefreshTokenRecord:
        with guarded(self.db, "refresh_tokens.create"):
            row = RefreshToken(
                user_id=user_id,
                token=token,
                expires_at=as_naive_utc(expires_at),
                is_revoked=False,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        logger.debug(f"Refresh token {row.id} gravado para o usuário {user_id}")
        return RefreshTokenRecord.from_row(row)

    def find_active(self, token: str, user_id: str) -> RefreshTokenRecord | None:
        """
        Busca pelo par exato (token, user_id). Quem chama confere is_revoked e
        expires_at.
        """
        with guarded(self.db, "refresh_tokens.find_active"):
            row = self.db.execute(
                select(RefreshToken).where(
                    RefreshToken.token == token,
                    RefreshToken.user_id == user_id,
                )
            ).scalar_one_or_none()
        return RefreshTokenRecord.from_row(row) if row else None

    def delete(self, token: str) -> bool:
        """Remove o registro do token. Idempotente: devolve False se não existia."""
        with guarded(self.db, "refresh_tokens.delete"):
            result = self.db.execute(delete(RefreshToken).where(RefreshToken.token == token))
            self.db.commit()
        return bool(result.rowcount)

    def purge_expired(self, now: datetime | None = None) -> int:
        cutoff = as_naive_utc(now or utcnow())
        with guarded(self.db, "refresh_tokens.purge_expired"):
            result = self.db.execute(delete(RefreshToken).where(RefreshToken.expires_at <= cutoff))
            self.db.commit()
        return int(result.rowcount or 0)
