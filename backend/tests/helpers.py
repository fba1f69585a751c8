from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from crmone.tokens import issue_access


def login(client: TestClient, email: str = "a@b.com", password: str = "secret"):
    return client.post("/auth/login", json={"email": email, "password": password})


def set_cookies(response) -> dict[str, str]:
    """Atributos de cada Set-Cookie (sem o valor), em minúsculas, pelo nome do cookie."""
    out = {}
    for raw in response.headers.get_list("set-cookie"):
        name, _, rest = raw.partition("=")
        _, _, attrs = rest.partition(";")
        out[name.strip()] = attrs.lower()
    return out


def expired_access_token(user) -> str:
    past = datetime.now(timezone.utc) - timedelta(minutes=20)
    return issue_access(user.id, user.email, user.role, now=past)
