"""
Script para verificar a conexão com o banco e as tabelas de autenticação.

IMPORTANTE: executar a partir do diretório backend:
  cd backend
  python scripts/verify_connection.py
"""
import sys
import os

# Garante que estamos no diretório correto
script_dir = os.path.dirname(os.path.abspath(__file__))
backend_dir = os.path.dirname(script_dir)
os.chdir(backend_dir)
sys.path.insert(0, backend_dir)

import logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from sqlalchemy import inspect, text

from crmone.config import get_settings
from crmone.db import Database

REQUIRED_TABLES = ["users", "refresh_tokens"]


def verify_connection() -> bool:
    """Verifica a conexão e mostra quantos registros há em cada tabela."""

    logger.info("="*80)
    logger.info("🔍 VERIFICANDO CONEXÃO COM O BANCO")
    logger.info("="*80)

    settings = get_settings()
    db = Database(settings.database_url, pool_size=1)

    try:
        with db.engine.connect() as connection:
            logger.info("✅ Conexão estabelecida")

            tables = inspect(connection).get_table_names()
            for table in REQUIRED_TABLES:
                if table not in tables:
                    logger.error(f"  ❌ {table}: NÃO ENCONTRADA")
                    logger.error("  → Execute: alembic upgrade head")
                    return False
                count = connection.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
                logger.info(f"  ✅ {table}: {count:,} registros")

        logger.info("="*80)
        logger.info("✅ VERIFICAÇÃO CONCLUÍDA")
        logger.info("="*80)
        return True

    except Exception as e:
        logger.error(f"❌ ERRO DE CONEXÃO: {str(e)}")
        logger.error("🔧 Possíveis soluções:")
        logger.error("   1. Verifique se o MySQL está rodando")
        logger.error("   2. Verifique as credenciais no .env (DB_* ou DATABASE_URL)")
        logger.error("   3. Verifique se o banco existe")
        return False
    finally:
        db.dispose()


if __name__ == "__main__":
    sys.exit(0 if verify_connection() else 1)
