"""
Identity provider client

Talks to a GoTrue-compatible auth API (the hosted Supabase auth service)
over HTTP. Credential checks and session issuance happen on the provider;
this module only forwards requests and maps responses into our models.
"""
import logging
from typing import Optional, Any
import httpx

from src.config import SUPABASE_URL, SUPABASE_ANON_KEY, IDENTITY_TIMEOUT_SECONDS, APP_VERSION
from src.exceptions import IdentityProviderError, wrap_external_exception
from src.models.auth import AuthResponse, AuthUser, Session, UserMetadata

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a provider error payload"""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(payload, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = payload.get(key)
            if value:
                return str(value)
    return f"HTTP {response.status_code}"


class IdentityProvider:
    """
    Async client for the hosted identity provider.

    Args:
        base_url: project URL (the auth API lives under /auth/v1)
        api_key: public anon key sent as the `apikey` header
        timeout: per-request timeout in seconds
        transport: optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = SUPABASE_URL,
        api_key: str = SUPABASE_ANON_KEY,
        timeout: float = IDENTITY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Content-Type": "application/json",
            "x-app-version": APP_VERSION,
        }
        headers["Authorization"] = f"Bearer {access_token or self.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
        access_token: Optional[str] = None
    ) -> Any:
        """
        Send one request to the auth API

        Raises:
            IdentityProviderError: provider answered with an error status
            ExternalAPIError: timeout or network failure
        """
        url = f"{self.base_url}/auth/v1{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation=operation)

        if response.status_code >= 400:
            message = _error_message(response)
            raise IdentityProviderError(
                message=message,
                status_code=response.status_code,
                operation=operation,
            )

        if not response.content:
            return None
        return response.json()

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[UserMetadata] = None
    ) -> AuthResponse:
        """
        Register a new account

        Returns:
            AuthResponse with a session, or with only a user when the
            provider requires email confirmation first
        """
        body: dict[str, Any] = {"email": email, "password": password}
        if metadata is not None:
            body["data"] = metadata.to_payload()

        payload = await self._request("POST", "/signup", "sign_up", json=body)
        return self._auth_response(payload)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        """Exchange email + password for a session"""
        payload = await self._request(
            "POST",
            "/token",
            "sign_in_with_password",
            json={"email": email, "password": password},
            params={"grant_type": "password"},
        )
        return self._auth_response(payload)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session on the provider"""
        await self._request("POST", "/logout", "sign_out", access_token=access_token)

    async def update_user(self, access_token: str, metadata: UserMetadata) -> AuthUser:
        """Replace the user's profile metadata"""
        payload = await self._request(
            "PUT",
            "/user",
            "update_user",
            json={"data": metadata.to_payload()},
            access_token=access_token,
        )
        return AuthUser.from_provider(payload)

    async def get_user(self, access_token: str) -> AuthUser:
        """Resolve an access token to its user"""
        payload = await self._request("GET", "/user", "get_user", access_token=access_token)
        return AuthUser.from_provider(payload)

    @staticmethod
    def _auth_response(payload: Optional[dict[str, Any]]) -> AuthResponse:
        if not payload:
            return AuthResponse()

        if payload.get("access_token"):
            session = Session.from_provider(payload)
            return AuthResponse(user=session.user, session=session)

        # Confirmation pending: the provider returns the bare user (or {"user": ...})
        user_payload = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        if user_payload.get("id"):
            return AuthResponse(user=AuthUser.from_provider(user_payload))
        return AuthResponse()
