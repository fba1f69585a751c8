import logging

from sqlalchemy.orm import Session

from .errors import InvalidCredentials, StoreUnavailable
from .records import UserRecord
from .security import burn_verification, check_needs_rehash, hash_password, verify_password
from .users import UserStore

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def verify_credentials(db: Session, email: str, password: str) -> UserRecord:
    """
    Confere email/senha. "Usuário inexistente" e "senha errada" levantam o mesmo
    InvalidCredentials, com o mesmo custo de hash.
    """
    users = UserStore(db)
    user = users.get_by_email(normalize_email(email))
    if user is None:
        burn_verification(password)
        raise InvalidCredentials("email desconhecido")

    if not verify_password(password, user.password_hash):
        raise InvalidCredentials("senha incorreta")

    if check_needs_rehash(user.password_hash):
        try:
            users.update_password_hash(user.id, hash_password(password))
            logger.info(f"Hash de senha do usuário {user.id} atualizado para argon2")
        except StoreUnavailable as e:
            logger.warning(f"Não foi possível regravar o hash do usuário {user.id}: {e.detail}")

    return user
