"""
Bearer-token credentials for the note service.

TokenCredentials holds the access/refresh token pair handed over by whatever
performed the login, and knows how to trade the refresh token for a new
access token. It is injected into NotesApiClient explicitly; there is no
process-wide auth singleton.

Concurrent requests that each hit an expired token each perform their own
refresh. Nothing is shared between in-flight refreshes.
"""

from typing import Any, Optional

import httpx

from notesync.errors import TransportError, Unauthorized

REFRESH_PATH = "api/auth/token/refresh/"


class TokenCredentials:
    """
    Access/refresh token pair with a refresh capability.

    Parameters
    ----------
    http : httpx.AsyncClient
        Client already configured with the service base URL. Borrowed, not
        owned: closing it is the API client's job.
    access_token : str | None
        Current bearer token.
    refresh_token : str | None
        Token used to obtain a new access token.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> None:
        self._http = http
        self.access_token = access_token
        self.refresh_token = refresh_token

    async def refresh(self) -> None:
        """
        Obtain a new access token.

        Raises
        ------
        Unauthorized
            If there is no refresh token, or the service rejects it.
        TransportError
            If the refresh request gets no response.
        """
        if not self.refresh_token:
            raise Unauthorized("No refresh token available")

        try:
            response = await self._http.post(REFRESH_PATH, json={"refresh": self.refresh_token})
        except httpx.HTTPError as exc:
            raise TransportError(f"Token refresh failed: {exc}") from exc

        if not response.is_success:
            raise Unauthorized(f"Token refresh rejected with HTTP {response.status_code}")

        try:
            payload: Any = response.json()
            access = payload["access"]
        except (ValueError, KeyError, TypeError) as exc:
            raise Unauthorized("Token refresh returned no access token") from exc

        self.access_token = access
        # The service may rotate the refresh token; keep the old one otherwise.
        if payload.get("refresh"):
            self.refresh_token = payload["refresh"]

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
