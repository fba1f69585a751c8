import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

# Parâmetros equilibrados entre segurança e latência (OWASP 2023)
# time_cost=2: número de iterações (mínimo recomendado)
# memory_cost=19456: ~19 MB de RAM
# parallelism=1: uma thread
ph = PasswordHasher(
    time_cost=2,
    memory_cost=19456,  # 19 MB (em KiB)
    parallelism=1
)

# Hashes gravados pelo sistema anterior (bcryptjs)
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# Usado quando o email não existe, para que a resposta custe o mesmo tempo
_DUMMY_HASH = ph.hash("crmone-dummy-password")


def hash_password(plain: str) -> str:
    return ph.hash(plain)


def is_legacy_hash(hashed: str) -> bool:
    return hashed.startswith(BCRYPT_PREFIXES)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    if is_legacy_hash(hashed):
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
    try:
        ph.verify(hashed, plain)
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def burn_verification(plain: str):
    """Gasta o mesmo trabalho de uma verificação real, sem resultado."""
    verify_password(plain, _DUMMY_HASH)


def check_needs_rehash(hashed: str) -> bool:
    """
    Indica se o hash deve ser regravado com os parâmetros atuais.
    Hashes bcrypt antigos sempre precisam.
    """
    if is_legacy_hash(hashed):
        return True
    try:
        return ph.check_needs_rehash(hashed)
    except InvalidHashError:
        return True
