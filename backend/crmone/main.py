import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .auth import current_user, require_roles
from .config import get_settings
from .credentials import normalize_email, verify_credentials
from .db import Database
from .deps import get_db
from .errors import (
    INTERNAL_ERROR_MESSAGE,
    AuthError,
    ExpiredToken,
    InvalidToken,
    RevokedOrUnknownToken,
    StoreUnavailable,
    UserNotFound,
    register_error_handlers,
)
from .gate import ACCESS_COOKIE, REFRESH_COOKIE, edge_gate
from .records import UserRecord
from .schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserOut,
)
from .security import hash_password
from .sessions import SessionStore
from .tokens import issue_access, issue_refresh, verify_access, verify_refresh
from .users import EmailTaken, UserStore

logger = logging.getLogger(__name__)

EMAIL_IN_USE_MESSAGE = "Este email já está em uso"


@asynccontextmanager
async def lifespan(app: FastAPI):
    s = get_settings()
    logging.basicConfig(
        level=s.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db = Database(
        s.database_url,
        pool_size=s.DB_POOL_SIZE,
        max_overflow=s.DB_MAX_OVERFLOW,
        pool_timeout=s.DB_POOL_TIMEOUT,
    )
    if s.DB_CREATE_ALL:
        db.create_all()
    app.state.db = db
    logger.info(f"CRMOne auth iniciado (env={s.APP_ENV})")
    try:
        yield
    finally:
        db.dispose()


def _cookie_domain() -> str | None:
    cd = (get_settings().COOKIE_DOMAIN or "").strip().lower()
    return cd if cd not in ("", "localhost", "127.0.0.1") else None


def _set_cookie(response: Response, key: str, value: str, max_age: int):
    s = get_settings()
    cookie_kwargs = dict(
        key=key,
        value=value,
        httponly=True,
        secure=s.cookie_secure,
        samesite=s.COOKIE_SAMESITE,
        max_age=max_age,
        path=s.COOKIE_PATH or "/",
    )
    domain = _cookie_domain()
    if domain:
        cookie_kwargs["domain"] = domain
    response.set_cookie(**cookie_kwargs)


def set_access_cookie(response: Response, token: str):
    _set_cookie(response, ACCESS_COOKIE, token, 60 * int(get_settings().ACCESS_TOKEN_EXPIRE_MINUTES))


def set_refresh_cookie(response: Response, token: str):
    _set_cookie(response, REFRESH_COOKIE, token, 60 * 60 * 24 * int(get_settings().REFRESH_TOKEN_EXPIRE_DAYS))


def clear_session_cookies(response: Response):
    s = get_settings()
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        delete_kwargs = dict(
            key=key,
            path=s.COOKIE_PATH or "/",
            secure=s.cookie_secure,
            httponly=True,
            samesite=s.COOKIE_SAMESITE,
        )
        domain = _cookie_domain()
        if domain:
            delete_kwargs["domain"] = domain
        response.delete_cookie(**delete_kwargs)


def _user_to_out(u: UserRecord) -> UserOut:
    return UserOut(**u.public())


def create_app() -> FastAPI:
    app = FastAPI(title="CRMOne Auth", version="0.1.0", lifespan=lifespan)

    register_error_handlers(app)
    # o gate roda dentro do CORS: preflight não passa pelo gate
    app.middleware("http")(edge_gate)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/health/db")
    def health_db(request: Request):
        if not request.app.state.db.ping():
            return JSONResponse({"status": "error", "error": "Banco indisponível"}, status_code=500)
        return {"status": "ok"}

    @app.post("/auth/register", response_model=RegisterResponse, status_code=201)
    def auth_register(body: RegisterRequest, db: Session = Depends(get_db)):
        email = normalize_email(str(body.email))
        users = UserStore(db)
        if users.email_exists(email):
            raise HTTPException(status_code=400, detail=EMAIL_IN_USE_MESSAGE)

        try:
            user = users.create(name=body.name.strip(), email=email, password_hash=hash_password(body.password))
        except EmailTaken:
            logger.info("Cadastro concorrente com email já em uso")
            raise HTTPException(status_code=400, detail=EMAIL_IN_USE_MESSAGE)
        logger.info(f"Usuário {user.id} registrado")
        return RegisterResponse(message="Usuário criado com sucesso", user=_user_to_out(user))

    @app.post("/auth/login", response_model=LoginResponse)
    def auth_login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
        if not body.email or not body.password:
            raise HTTPException(status_code=400, detail="Email e senha são obrigatórios")

        user = verify_credentials(db, body.email, body.password)

        access_token = issue_access(user.id, user.email, user.role)
        set_access_cookie(response, access_token)

        # sem refresh gravado o login continua valendo, só não renova
        message = "Login bem-sucedido"
        raw_refresh, expires_at = issue_refresh(user.id)
        try:
            SessionStore(db).create(user.id, raw_refresh, expires_at)
            set_refresh_cookie(response, raw_refresh)
        except StoreUnavailable as e:
            logger.error(f"Falha ao gravar refresh token do usuário {user.id}: {e.detail}", exc_info=e)
            message = "Login bem-sucedido (mas falha ao armazenar refresh token)"

        logger.info(f"Login do usuário {user.id}")
        return LoginResponse(message=message, user=_user_to_out(user))

    @app.post("/auth/logout", response_model=MessageResponse)
    def auth_logout(request: Request, response: Response, db: Session = Depends(get_db)):
        try:
            raw_refresh = request.cookies.get(REFRESH_COOKIE)
            if raw_refresh:
                try:
                    if SessionStore(db).delete(raw_refresh):
                        logger.info("Logout: refresh token removido")
                    else:
                        logger.info("Logout: refresh token não encontrado ou já removido")
                except StoreUnavailable as e:
                    # o logout vale no cliente mesmo com o banco fora
                    logger.error(f"Logout: falha ao remover refresh token: {e.detail}", exc_info=e)
            else:
                logger.info("Logout sem refresh cookie")
        except Exception:
            logger.exception("Erro inesperado durante o logout")
            error = JSONResponse({"error": INTERNAL_ERROR_MESSAGE}, status_code=500)
            clear_session_cookies(error)
            return error

        clear_session_cookies(response)
        return MessageResponse(message="Logout bem-sucedido")

    @app.post("/auth/refresh", response_model=RefreshResponse)
    def auth_refresh(request: Request, response: Response, db: Session = Depends(get_db)):
        raw_refresh = request.cookies.get(REFRESH_COOKIE)
        if not raw_refresh:
            raise InvalidToken("refresh cookie ausente")

        claims = verify_refresh(raw_refresh)

        record = SessionStore(db).find_active(raw_refresh, claims.user_id)
        if record is None:
            raise RevokedOrUnknownToken("refresh token não encontrado para o usuário")
        if record.is_revoked:
            raise RevokedOrUnknownToken("refresh token revogado")
        if record.is_expired():
            raise ExpiredToken("refresh token expirado no banco")

        # role/email podem ter mudado desde o login
        user = UserStore(db).get_by_id(claims.user_id)
        if user is None:
            raise UserNotFound(f"usuário {claims.user_id} não existe mais")

        # sem rotação: o mesmo refresh token segue válido até expirar ou logout
        access_token = issue_access(user.id, user.email, user.role)
        set_access_cookie(response, access_token)

        logger.info(f"Access token renovado para o usuário {user.id}")
        return RefreshResponse(
            message="Token atualizado com sucesso",
            user=_user_to_out(user),
            accessToken=access_token,
        )

    @app.get("/auth/verify")
    def auth_verify(request: Request, db: Session = Depends(get_db)):
        try:
            token = request.cookies.get(ACCESS_COOKIE)
            if not token:
                raise InvalidToken("access cookie ausente")
            claims = verify_access(token)
            user = UserStore(db).get_by_id(claims.user_id)
            if user is None:
                raise UserNotFound(f"usuário {claims.user_id} não existe mais")
        except AuthError as e:
            if isinstance(e, StoreUnavailable):
                logger.error(f"Verify: banco indisponível: {e.detail}", exc_info=e)
            else:
                logger.info(f"Verify negado: {e.kind.value}")
            return JSONResponse(
                {"authenticated": False, "error": e.public_message},
                status_code=e.status_code,
            )

        return {"authenticated": True, "user": user.public()}

    @app.get("/users/profile", response_model=UserOut)
    def users_profile(user: UserRecord = Depends(current_user)):
        return _user_to_out(user)

    @app.get("/admin/ping")
    def admin_ping(user: UserRecord = Depends(require_roles("admin"))):
        return {"ok": True, "role": user.role.value}

    return app


app = create_app()
