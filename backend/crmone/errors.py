"""
Taxonomia de erros de autenticação e handlers que montam o envelope {"error": ...}.

Cada classe corresponde a um único AuthErrorKind. ExpiredToken herda de InvalidToken:
quem não precisa distinguir captura só InvalidToken.
"""
import logging
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Credenciais inválidas"
INVALID_TOKEN_MESSAGE = "Token inválido ou expirado"
INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    REVOKED_OR_UNKNOWN_TOKEN = "revoked_or_unknown_token"
    USER_NOT_FOUND = "user_not_found"
    STORE_UNAVAILABLE = "store_unavailable"


class AuthError(Exception):
    kind: AuthErrorKind
    status_code = 401
    public_message = INVALID_TOKEN_MESSAGE

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind.value)
        self.detail = detail


class InvalidCredentials(AuthError):
    kind = AuthErrorKind.INVALID_CREDENTIALS
    public_message = INVALID_CREDENTIALS_MESSAGE


class InvalidToken(AuthError):
    kind = AuthErrorKind.INVALID_TOKEN


class ExpiredToken(InvalidToken):
    kind = AuthErrorKind.EXPIRED_TOKEN


class RevokedOrUnknownToken(AuthError):
    kind = AuthErrorKind.REVOKED_OR_UNKNOWN_TOKEN


class UserNotFound(AuthError):
    kind = AuthErrorKind.USER_NOT_FOUND


class StoreUnavailable(AuthError):
    kind = AuthErrorKind.STORE_UNAVAILABLE
    status_code = 500
    public_message = INTERNAL_ERROR_MESSAGE


def error_response(message: str, status: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def register_error_handlers(app: FastAPI):
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, err: AuthError):
        if isinstance(err, StoreUnavailable):
            logger.error(f"Banco indisponível em {request.method} {request.url.path}: {err.detail}",
                         exc_info=err)
        else:
            logger.info(f"{request.method} {request.url.path} negado: {err.kind.value}")
        return error_response(err.public_message, err.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, err: StarletteHTTPException):
        return JSONResponse(
            {"error": err.detail},
            status_code=err.status_code,
            headers=getattr(err, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, err: RequestValidationError):
        return error_response("Requisição inválida", 400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, err: Exception):
        logger.exception(f"Erro não tratado em {request.method} {request.url.path}", exc_info=err)
        return error_response(INTERNAL_ERROR_MESSAGE, 500)
