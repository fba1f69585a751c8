"""
Edge gate: roda antes de qualquer rota e decide entre seguir, adiar ou redirecionar.

É só um pré-filtro para tráfego sem credencial (cookie ou header Bearer). Com
access token inválido mas refresh cookie presente a requisição segue sem
autenticação na borda: cada rota protegida verifica o token de novo
(auth.current_user) e o cliente chama /auth/refresh quando receber 401.
"""
import logging
from enum import Enum
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from .config import get_settings
from .errors import InvalidToken
from .tokens import verify_access

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class GateDecision(str, Enum):
    PASS = "pass"
    DEFER = "defer"        # segue sem autenticação; renovação fica com o cliente
    REDIRECT = "redirect"


def is_public_path(path: str, public_paths: list[str]) -> bool:
    for prefix in public_paths:
        if prefix == "/":
            if path == "/":
                return True
            continue
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def access_token_is_valid(token: str | None) -> bool:
    if not token:
        return False
    try:
        verify_access(token)
        return True
    except InvalidToken:
        return False


def bearer_token(request: Request) -> str | None:
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def decide(path: str, access_token: str | None, refresh_token: str | None,
           public_paths: list[str]) -> GateDecision:
    if is_public_path(path, public_paths):
        return GateDecision.PASS
    if access_token_is_valid(access_token):
        return GateDecision.PASS
    if refresh_token:
        return GateDecision.DEFER
    return GateDecision.REDIRECT


def login_redirect_url(request: Request) -> str:
    target = request.url.path
    if request.url.query:
        target += "?" + request.url.query
    return f"{get_settings().login_url}?{urlencode({'redirect': target})}"


async def edge_gate(request: Request, call_next):
    settings = get_settings()
    path = request.url.path
    # mesma ordem de auth.read_access_token: cookie, depois header Bearer
    access_token = request.cookies.get(ACCESS_COOKIE) or bearer_token(request)
    decision = decide(
        path,
        access_token,
        request.cookies.get(REFRESH_COOKIE),
        settings.public_paths,
    )

    if decision is GateDecision.REDIRECT:
        logger.info(f"Gate: {path} sem access nem refresh token, redirecionando para login")
        return RedirectResponse(login_redirect_url(request), status_code=307)

    if decision is GateDecision.DEFER:
        logger.debug(f"Gate: {path} com access token inválido, refresh presente; adiando")

    return await call_next(request)
