"""
Altegio Onboarding — Altegio API Client

Thin synchronous wrapper over the Altegio REST API (httpx). Only the
calls onboarding needs: auth, entity creation, and the two deletes
used by rollback.

Every request carries
    Authorization: Bearer <partner_token>[, User <user_token>]
    Accept: application/vnd.api.v2+json
and every response is an envelope {"success": bool, "data": ...}.

Example usage:
    client = AltegioClient(partner_token="...", credentials=CredentialStore("~/.altegio-mcp"))
    client.login("owner@salon.com", "secret")
    staff = client.create_staff(123, {"name": "Alice", "specialization": "Stylist"})
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from onboarding.config import DEFAULT_API_BASE, Settings
from onboarding.errors import PlatformApiError, PlatformAuthError
from providers.credentials import CredentialStore

logger = logging.getLogger("altegio_onboarding.altegio")

ACCEPT = "application/vnd.api.v2+json"


class AltegioClient:
    """
    Args:
        api_base: API root, e.g. https://api.alteg.io/api/v1
        partner_token: partner (application) token, sent on every call
        user_token: user token; falls back to the one saved in credentials
        credentials: where login() persists the user token
        timeout: per-request timeout in seconds
        transport: optional httpx transport (httpx.MockTransport in tests)
    """

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        partner_token: str = "",
        user_token: str | None = None,
        credentials: CredentialStore | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.partner_token = partner_token
        self.credentials = credentials
        self.user_token = user_token or self._saved_token()
        self._http = httpx.Client(base_url=self.api_base, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.BaseTransport | None = None) -> AltegioClient:
        return cls(
            api_base=settings.api_base,
            partner_token=settings.partner_token,
            user_token=settings.user_token or None,
            credentials=CredentialStore(settings.credentials_dir),
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    def _saved_token(self) -> str | None:
        if self.credentials is None:
            return None
        saved = self.credentials.load()
        return (saved or {}).get("user_token") or None

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # ─── Transport ──────────────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        auth = f"Bearer {self.partner_token}"
        if self.user_token:
            auth += f", User {self.user_token}"
        return {"Accept": ACCEPT, "Authorization": auth}

    def _request(self, method: str, path: str, action: str, body: dict | None = None) -> httpx.Response:
        try:
            resp = self._http.request(method, path, headers=self._headers(), json=body)
        except httpx.HTTPError as e:
            raise PlatformApiError(f"Failed to {action}: {e}") from e
        logger.debug("%s %s -> %d", method, path, resp.status_code)
        if not resp.is_success:
            raise PlatformApiError(
                f"Failed to {action}: HTTP {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
                response=resp.text,
            )
        return resp

    def _data(self, resp: httpx.Response, action: str) -> Any:
        try:
            envelope = resp.json()
        except ValueError:
            raise PlatformApiError(f"Failed to {action}: Invalid response", resp.status_code, resp.text) from None
        if not isinstance(envelope, dict) or not envelope.get("success") or envelope.get("data") is None:
            raise PlatformApiError(f"Failed to {action}: Invalid response", resp.status_code, resp.text)
        return envelope["data"]

    def _write(self, method: str, path: str, action: str, body: dict | None = None) -> httpx.Response:
        if not self.user_token:
            raise PlatformAuthError()
        return self._request(method, path, action, body)

    def _create(self, path: str, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._data(self._write("POST", path, action, payload), action)

    # ─── Auth ───────────────────────────────────────────────────────

    def is_authenticated(self) -> bool:
        return bool(self.user_token)

    def login(self, email: str, password: str) -> str:
        """Exchange credentials for a user token and persist it. Returns the token."""
        resp = self._request("POST", "/auth", "log in", {"login": email, "password": password})
        try:
            envelope = resp.json()
        except ValueError:
            raise PlatformAuthError("Login failed: Invalid response") from None
        data = envelope.get("data") or {}
        token = data.get("user_token")
        if not envelope.get("success") or not token:
            message = (envelope.get("meta") or {}).get("message") or "Login failed"
            raise PlatformAuthError(message)

        self.user_token = token
        if self.credentials is not None:
            self.credentials.save({
                "user_token": token,
                "user_id": data.get("id"),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })
        logger.info("Logged in to Altegio as %s", email)
        return token

    def logout(self):
        self.user_token = None
        if self.credentials is not None:
            self.credentials.clear()

    # ─── Onboarding writes ──────────────────────────────────────────

    def create_staff(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._create(f"/company/{company_id}/staff/quick", "create staff", payload)

    def create_service_category(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._create(f"/service_categories/{company_id}", "create service category", payload)

    def create_service(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._create(f"/services/{company_id}", "create service", payload)

    def create_client(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._create(f"/clients/{company_id}", "create client", payload)

    def create_booking(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._create(f"/records/{company_id}", "create booking", payload)

    def delete_staff(self, company_id: int, staff_id: int) -> None:
        self._write("DELETE", f"/staff/{company_id}/{staff_id}", "delete staff")

    def delete_booking(self, company_id: int, record_id: int) -> None:
        self._write("DELETE", f"/record/{company_id}/{record_id}", "delete booking")
