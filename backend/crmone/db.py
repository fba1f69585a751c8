import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Pool de conexões da aplicação. Criado no startup (lifespan), guardado em
    app.state.db e liberado com dispose() no shutdown.

    acquire() empresta uma sessão do pool e a devolve em qualquer saída,
    inclusive exceções.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 10,
        max_overflow: int = 0,
        pool_timeout: int = 30,
        echo: bool = False,
    ):
        pool_kwargs = {}
        if url.startswith("sqlite"):
            # sessões sync do FastAPI abrem e fecham em threads diferentes
            pool_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            pool_kwargs = dict(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
            )
        self.engine = create_engine(url, pool_pre_ping=True, echo=echo, **pool_kwargs)
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def acquire(self) -> Iterator[Session]:
        db = self._sessions()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_all(self):
        # importa os modelos para registrá-los no metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Ping no banco falhou: {e}")
            return False

    def dispose(self):
        self.engine.dispose()
        logger.info("Pool de conexões liberado")


@contextmanager
def guarded(db: Session, operation: str) -> Iterator[None]:
    """Converte falhas do SQLAlchemy em StoreUnavailable, desfazendo a transação."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailable(f"{operation}: {e}") from e
