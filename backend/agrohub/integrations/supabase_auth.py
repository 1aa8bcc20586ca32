"""
Supabase Auth (GoTrue) client.

Implements the IdentityProvider contract over the GoTrue REST API.
Public calls authenticate with the anon key, admin calls with the
service-role key.
"""
import logging
from typing import Any, Optional
from uuid import UUID

import httpx
from jose import JWTError, jwt

from agrohub.config import settings
from agrohub.core.security import decode_token
from agrohub.integrations.identity import (
    IdentityProvider,
    IdentityProviderError,
    IdentitySession,
    VerifiedToken,
)

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """HTTP client for the Supabase Auth API."""

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        service_key: str | None = None,
        jwt_secret: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (url or settings.SUPABASE_URL).rstrip("/") + "/auth/v1"
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.service_key = service_key if service_key is not None else settings.SUPABASE_SERVICE_ROLE_KEY
        self.jwt_secret = jwt_secret if jwt_secret is not None else settings.SUPABASE_JWT_SECRET
        self.timeout = timeout or settings.SUPABASE_TIMEOUT_SECONDS
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def close(self) -> None:
        await self._client.aclose()

    # ==================== TRANSPORT ====================

    def _public_headers(self) -> dict[str, str]:
        return {"apikey": self.anon_key}

    def _admin_headers(self) -> dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(
                method, url, headers=headers, json=json, params=params
            )
        except httpx.TimeoutException as e:
            logger.error(f"[Auth] Timeout calling {method} {path}")
            raise IdentityProviderError("Identity provider timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"[Auth] Transport error calling {method} {path}: {e}")
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(f"[Auth] {method} {path} failed: HTTP {response.status_code} {message}")
            raise IdentityProviderError(message, status_code=response.status_code)

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
        return f"HTTP {response.status_code}"

    @staticmethod
    def _session(data: dict[str, Any]) -> IdentitySession:
        user = data.get("user") or {}
        if not data.get("access_token") or not user.get("id"):
            raise IdentityProviderError("Identity provider returned no session")
        return IdentitySession(
            user_id=UUID(user["id"]),
            email=user.get("email") or "",
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
        )

    # ==================== SESSIONS ====================

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "/token",
            headers=self._public_headers(),
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._session(data)

    async def send_otp(
        self,
        email: str,
        metadata: Optional[dict[str, Any]] = None,
        create_user: bool = True,
    ) -> None:
        await self._request(
            "POST",
            "/otp",
            headers=self._public_headers(),
            json={"email": email, "create_user": create_user, "data": metadata or {}},
        )

    async def verify_otp(self, email: str, code: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "/verify",
            headers=self._public_headers(),
            json={"type": "email", "email": email, "token": code},
        )
        return self._session(data)

    async def verify_token(self, token: str) -> VerifiedToken:
        """Verify a session JWT.

        With a configured JWT secret the signature is checked locally;
        otherwise the token is validated by the auth server itself.
        """
        if self.jwt_secret:
            try:
                claims = decode_token(token, secret=self.jwt_secret)
            except JWTError as e:
                raise IdentityProviderError(f"Invalid token: {e}", status_code=401) from e
        else:
            user = await self._request(
                "GET",
                "/user",
                headers={"apikey": self.anon_key, "Authorization": f"Bearer {token}"},
            )
            try:
                claims = jwt.get_unverified_claims(token)
            except JWTError as e:
                raise IdentityProviderError(f"Invalid token: {e}", status_code=401) from e
            claims.setdefault("sub", user.get("id"))
            claims.setdefault("email", user.get("email"))

        sub = claims.get("sub")
        try:
            user_id = UUID(sub) if sub else None
        except ValueError as e:
            raise IdentityProviderError("Invalid token subject", status_code=401) from e
        return VerifiedToken(user_id=user_id, email=claims.get("email") or "", claims=claims)

    async def sign_out(self, token: str) -> None:
        await self._request(
            "POST",
            "/logout",
            headers={"apikey": self.service_key, "Authorization": f"Bearer {token}"},
            params={"scope": "global"},
        )

    # ==================== ADMIN ====================

    async def create_user(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UUID:
        data = await self._request(
            "POST",
            "/admin/users",
            headers=self._admin_headers(),
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": metadata or {},
            },
        )
        return UUID(data["id"])

    async def delete_user(self, user_id: UUID) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}", headers=self._admin_headers())

    async def update_user(
        self,
        user_id: UUID,
        password: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if password:
            payload["password"] = password
        if metadata is not None:
            payload["user_metadata"] = metadata
        if not payload:
            return
        await self._request(
            "PUT", f"/admin/users/{user_id}", headers=self._admin_headers(), json=payload
        )

    async def invite_by_email(
        self,
        email: str,
        redirect_url: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        logger.info(f"[Auth] Sending invitation email to {email}")
        await self._request(
            "POST",
            "/invite",
            headers=self._admin_headers(),
            params={"redirect_to": redirect_url},
            json={"email": email, "data": metadata or {}},
        )
