"""
Remove da tabela refresh_tokens os registros já expirados.

O serviço nunca apaga tokens vencidos sozinho (só o logout apaga); rodar este
script por cron para a tabela não crescer indefinidamente.

  cd backend
  python scripts/purge_expired_tokens.py [--dry-run]
"""
import sys
import os
import argparse

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from sqlalchemy import func, select

from crmone.config import get_settings
from crmone.db import Database
from crmone.errors import StoreUnavailable
from crmone.models.refresh_token import RefreshToken
from crmone.records import utcnow
from crmone.sessions import SessionStore


def purge(dry_run: bool = False) -> int:
    settings = get_settings()
    db = Database(settings.database_url, pool_size=1)
    now = utcnow()
    try:
        with db.acquire() as session:
            if dry_run:
                count = session.execute(
                    select(func.count()).select_from(RefreshToken).where(RefreshToken.expires_at <= now)
                ).scalar()
                logger.info(f"🔎 {count} refresh tokens expirados seriam removidos")
                return int(count or 0)
            removed = SessionStore(session).purge_expired(now)
            logger.info(f"🧹 {removed} refresh tokens expirados removidos")
            return removed
    finally:
        db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--dry-run", action="store_true", help="só conta, não apaga")
    args = parser.parse_args()
    try:
        purge(dry_run=args.dry_run)
    except StoreUnavailable as e:
        logger.error(f"❌ Banco indisponível: {e.detail}")
        sys.exit(1)
