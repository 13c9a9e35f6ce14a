"""
bot_access.identity_clients.admin_http

HTTP client boundary for the identity provider's admin API.

Responsibilities:
- Authenticate with the service key (a trusted credential, configured out-of-band).
- Look up accounts by email, create invitation account shells, delete accounts.
- Translate transport/HTTP failures into `IdentityProviderError`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from bot_access.errors import ConfigurationError
from bot_access.settings import Settings


@dataclass(frozen=True, slots=True)
class IdentityAccount:
    id: str
    email: str
    # True once the invited user confirmed the invitation and finished setup.
    setup_completed: bool


class IdentityProviderError(Exception):
    pass


class IdentityAdmin(Protocol):
    async def list_users(self) -> list[IdentityAccount]: ...

    async def find_user_by_email(self, email: str) -> IdentityAccount | None: ...

    async def invite_user_by_email(
        self, email: str, *, metadata: dict[str, Any]
    ) -> IdentityAccount: ...

    async def delete_user(self, user_id: str) -> None: ...


def _account(raw: dict[str, Any]) -> IdentityAccount:
    return IdentityAccount(
        id=str(raw["id"]),
        email=str(raw.get("email") or "").strip().lower(),
        setup_completed=raw.get("confirmed_at") is not None,
    )


class IdentityAdminClient:
    """
    Talks to a GoTrue-style admin API:
    - GET    /admin/users?page=&per_page=
    - POST   /invite
    - DELETE /admin/users/{id}
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        service_key: str,
        redirect_to: str,
        page_size: int = 100,
    ) -> None:
        self._http = http
        self._service_key = service_key
        self._redirect_to = redirect_to
        self._page_size = page_size

    def _headers(self) -> dict[str, str]:
        return {"apikey": self._service_key, "Authorization": f"Bearer {self._service_key}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            r = await self._http.request(method, url, headers=self._headers(), **kwargs)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"{method} {url} failed: {e}") from e
        return r

    async def _user_pages(self) -> AsyncIterator[list[dict[str, Any]]]:
        page = 1
        while True:
            r = await self._request(
                "GET", "/admin/users", params={"page": page, "per_page": self._page_size}
            )
            users = r.json().get("users", [])
            yield users
            # A short page is the last one.
            if len(users) < self._page_size:
                return
            page += 1

    async def list_users(self) -> list[IdentityAccount]:
        return [_account(raw) async for users in self._user_pages() for raw in users]

    async def find_user_by_email(self, email: str) -> IdentityAccount | None:
        wanted = email.strip().lower()
        async for users in self._user_pages():
            for raw in users:
                if str(raw.get("email") or "").strip().lower() == wanted:
                    return _account(raw)
        return None

    async def invite_user_by_email(
        self, email: str, *, metadata: dict[str, Any]
    ) -> IdentityAccount:
        r = await self._request(
            "POST",
            "/invite",
            params={"redirect_to": self._redirect_to},
            json={"email": email, "data": metadata},
        )
        return _account(r.json())

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}")


def create_identity_http(settings: Settings) -> httpx.AsyncClient | None:
    if not settings.identity_admin_url:
        return None
    return httpx.AsyncClient(
        base_url=settings.identity_admin_url.rstrip("/"),
        timeout=settings.identity_timeout_seconds,
    )


def create_identity_admin(
    settings: Settings, http: httpx.AsyncClient | None
) -> IdentityAdminClient | None:
    if http is None:
        return None
    if not settings.identity_service_key:
        raise ConfigurationError("identity_service_key is required when identity_admin_url is set")
    return IdentityAdminClient(
        http=http,
        service_key=settings.identity_service_key,
        redirect_to=settings.invite_redirect_url,
    )


# --- Module Notes -----------------------------------------------------------
# Timeouts are set on the shared httpx client; retries are left to callers.
