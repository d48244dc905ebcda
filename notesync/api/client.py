"""
Async HTTP client for the note service.

NotesApiClient is a thin, typed wrapper around httpx.AsyncClient. It exposes
the paginated list/filter calls and the per-note create/read/update/delete
calls the Sync Engine needs, plus the two account calls (userinfo and
change-password). It normalizes every failure into the
notesync.errors taxonomy:

    • no response (connection error, timeout)  → TransportError
    • body is not the expected JSON shape       → DecodeError
    • 401 after one refresh-and-retry           → Unauthorized
    • 404 on a note id                          → NotFound
    • any other non-2xx status                  → ApiError

Token expiry is handled in exactly one place: the `refresh_once` decorator
around `_send`. Individual endpoint methods never look at 401s themselves.
There is no other retry at this layer.
"""

import functools
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from notesync.api.auth import TokenCredentials
from notesync.errors import ApiError, DecodeError, NotFound, TransportError, Unauthorized
from notesync.logging_utils import log_verbose
from notesync.types import CredentialProvider, NotePage, RemoteNote, UserInfo

DEFAULT_TIMEOUT = 60.0
DEFAULT_PAGE_SIZE = 10

NOTES_PATH = "api/notes/"
FILTER_PATH = "api/notes/filter"
USERINFO_PATH = "api/auth/userinfo/"
CHANGE_PASSWORD_PATH = "api/auth/change-password/"

_NOTE_FIELDS = ("id", "title", "description", "created_at", "updated_at")

SendFn = Callable[..., Awaitable[httpx.Response]]


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------


def _decode_note(payload: Any) -> RemoteNote:
    """Validate one note object from the service and return it as a RemoteNote."""
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a note object, got {type(payload).__name__}")

    missing = [field for field in _NOTE_FIELDS if field not in payload]
    if missing:
        raise DecodeError(f"Note payload missing fields: {', '.join(missing)}")

    note_id = payload["id"]
    if isinstance(note_id, bool) or not isinstance(note_id, int):
        raise DecodeError(f"Note id must be an integer, got {note_id!r}")

    for field in _NOTE_FIELDS[1:]:
        if not isinstance(payload[field], str):
            raise DecodeError(f"Note field '{field}' must be a string, got {payload[field]!r}")

    return {
        "id": note_id,
        "title": payload["title"],
        "description": payload["description"],
        "created_at": payload["created_at"],
        "updated_at": payload["updated_at"],
    }


def _decode_user_info(payload: Any) -> UserInfo:
    """Validate the account object returned by the userinfo endpoint."""
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a user object, got {type(payload).__name__}")

    user_id = payload.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise DecodeError(f"User id must be an integer, got {user_id!r}")
    for field in ("username", "email"):
        if not isinstance(payload.get(field), str):
            raise DecodeError(f"User field '{field}' must be a string")
    # Names are optional on the account
    for field in ("first_name", "last_name"):
        if payload.get(field) is not None and not isinstance(payload[field], str):
            raise DecodeError(f"User field '{field}' must be a string or null")

    return {
        "id": user_id,
        "username": payload["username"],
        "email": payload["email"],
        "first_name": payload.get("first_name"),
        "last_name": payload.get("last_name"),
    }


def _decode_page(payload: Any) -> NotePage:
    """Reduce the {count, next, previous, results} envelope to a NotePage."""
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        raise DecodeError("Expected a paginated envelope with a 'results' list")

    items: List[RemoteNote] = [_decode_note(item) for item in payload["results"]]
    count = payload.get("count")
    return {
        "items": items,
        "has_next": payload.get("next") is not None,
        "count": count if isinstance(count, int) else len(items),
    }


def _extract_json(response: httpx.Response, note_id: Optional[int] = None) -> Any:
    """
    Turn a response into decoded JSON or raise the matching NoteSyncError.

    401s never reach this helper: `refresh_once` has already either retried
    them away or raised Unauthorized.
    """
    if response.status_code == 404:
        raise NotFound(note_id)

    if not response.is_success:
        raise ApiError(response.status_code, response.text[:200])

    if response.status_code == 204 or not response.content:
        return None

    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(f"Response body is not valid JSON: {exc}") from exc


# ---------------------------------------------------------------------------
# Refresh-then-retry middleware
# ---------------------------------------------------------------------------


def refresh_once(send: SendFn) -> SendFn:
    """
    Wrap a transport call with a single refresh-and-retry on HTTP 401.

    The wrapped call is issued; if the service answers 401, the client's
    credentials are refreshed once and the call is replayed once. A second
    401 raises Unauthorized. Refresh failures propagate unchanged.
    """

    @functools.wraps(send)
    async def wrapper(self: "NotesApiClient", method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await send(self, method, path, **kwargs)
        if response.status_code != 401:
            return response

        log_verbose(f"{method} {path}: access token expired, refreshing", self.verbose)
        await self.credentials.refresh()

        response = await send(self, method, path, **kwargs)
        if response.status_code == 401:
            raise Unauthorized(f"{method} {path} still unauthorized after token refresh")
        return response

    return wrapper


# ---------------------------------------------------------------------------
# Main client
# ---------------------------------------------------------------------------


class NotesApiClient:
    """
    Dependency-injected client for the note REST API.

    Parameters
    ----------
    http : httpx.AsyncClient
        Client configured with the service base URL and timeout. Owned by
        this object and closed by aclose().
    credentials : CredentialProvider
        Source of the bearer token and of token refreshes.
    verbose : bool
        Print progress lines (token refreshes) via logging_utils.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: CredentialProvider,
        verbose: bool = False,
    ) -> None:
        self._http = http
        self.credentials = credentials
        self.verbose = verbose

    @classmethod
    def connect(
        cls,
        base_url: str,
        *,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        verbose: bool = False,
    ) -> "NotesApiClient":
        """
        Build a client and its TokenCredentials over one shared httpx client.

        `transport` exists for tests (httpx.MockTransport).
        """
        http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        credentials = TokenCredentials(http, access_token, refresh_token)
        return cls(http, credentials, verbose=verbose)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "NotesApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    @refresh_once
    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        headers = {}
        token = self.credentials.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            return await self._http.request(method, path, params=params, json=json_body, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    # -----------------------------------------------------------------------
    # Paginated reads
    # -----------------------------------------------------------------------

    async def list_notes(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> NotePage:
        response = await self._send("GET", NOTES_PATH, params={"page": page, "page_size": page_size})
        return _decode_page(_extract_json(response))

    async def filter_notes(
        self, query: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
    ) -> NotePage:
        """
        Search notes server-side. The same query is sent as both the title
        and the description filter, so a note matches if either contains it.
        """
        params = {"title": query, "description": query, "page": page, "page_size": page_size}
        response = await self._send("GET", FILTER_PATH, params=params)
        return _decode_page(_extract_json(response))

    # -----------------------------------------------------------------------
    # Per-note calls
    # -----------------------------------------------------------------------

    async def get_note(self, note_id: int) -> RemoteNote:
        response = await self._send("GET", f"{NOTES_PATH}{note_id}/")
        return _decode_note(_extract_json(response, note_id))

    async def create_note(self, title: str, content: str) -> RemoteNote:
        response = await self._send(
            "POST", NOTES_PATH, json_body={"title": title, "description": content}
        )
        return _decode_note(_extract_json(response))

    async def update_note(self, note_id: int, title: str, content: str) -> RemoteNote:
        response = await self._send(
            "PUT", f"{NOTES_PATH}{note_id}/", json_body={"title": title, "description": content}
        )
        return _decode_note(_extract_json(response, note_id))

    async def delete_note(self, note_id: int) -> None:
        response = await self._send("DELETE", f"{NOTES_PATH}{note_id}/")
        _extract_json(response, note_id)

    # -----------------------------------------------------------------------
    # Account
    # -----------------------------------------------------------------------

    async def user_info(self) -> UserInfo:
        response = await self._send("GET", USERINFO_PATH)
        return _decode_user_info(_extract_json(response))

    async def change_password(self, old_password: str, new_password: str) -> None:
        """
        Change the account password. The service answers with an empty body;
        a rejected old password comes back as ApiError (HTTP 400).
        """
        response = await self._send(
            "POST",
            CHANGE_PASSWORD_PATH,
            json_body={"old_password": old_password, "new_password": new_password},
        )
        _extract_json(response)
