# crmone/auth.py
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .deps import get_db
from .errors import InvalidToken, UserNotFound
from .gate import ACCESS_COOKIE
from .records import Role, UserRecord
from .tokens import verify_access
from .users import UserStore

bearer = HTTPBearer(auto_error=False)


def read_access_token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    """Cookie primeiro; header Authorization: Bearer como alternativa."""
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and creds is not None:
        token = creds.credentials
    return token


def current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> UserRecord:
    """
    Verificação feita por cada rota protegida. O edge gate deixa passar
    requisições com access token inválido quando há refresh cookie, então esta
    checagem não é opcional.
    """
    token = read_access_token(request, creds)
    if not token:
        raise InvalidToken("access token ausente")

    claims = verify_access(token)
    user = UserStore(db).get_by_id(claims.user_id)
    if user is None:
        raise UserNotFound(f"usuário {claims.user_id} não existe mais")
    return user


def require_roles(*roles):
    allowed = set(Role(r.strip().lower()) for r in roles if r and r.strip())

    def _inner(user: UserRecord = Depends(current_user)) -> UserRecord:
        if not allowed:
            return user
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissão insuficiente")
        return user

    return _inner
