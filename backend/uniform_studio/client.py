# Overview: HTTP client for the order API with pluggable session storage.

"""
API client

The token and signed-in user live in a SessionContext rather than any global
state, so a CLI, a script or a test each choose where the session is kept:

    session = FileSession("~/.uniform_studio/session.json")
    api = StudioClient("http://localhost:5000", session)
    api.login("sales@us81.local", "password123")
    api.list_orders(q="OS-2025")

Every non-2xx response raises ApiError. A 401 also clears the stored session
and raises AuthenticationRequired, which callers treat as "go back to login".
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx


class ApiError(Exception):
    def __init__(self, status: int, message: str, details: Optional[List[Dict]] = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.details = details or []


class AuthenticationRequired(ApiError):
    """The session is missing, expired or rejected by the server."""


# =============================================================================
# SESSION STORES
# =============================================================================

class SessionContext:
    """Where a client keeps its session: {"token": str, "user": dict}."""

    def get(self) -> Optional[Dict]:
        raise NotImplementedError

    def set(self, session: Dict) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    @property
    def token(self) -> Optional[str]:
        session = self.get()
        return session.get("token") if session else None


class MemorySession(SessionContext):
    def __init__(self, session: Optional[Dict] = None):
        self._session = dict(session) if session else None

    def get(self) -> Optional[Dict]:
        return dict(self._session) if self._session else None

    def set(self, session: Dict) -> None:
        self._session = dict(session)

    def clear(self) -> None:
        self._session = None


class FileSession(SessionContext):
    """JSON file on disk; survives process restarts."""

    def __init__(self, path):
        self.path = Path(os.path.expanduser(str(path)))

    def get(self) -> Optional[Dict]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            # Unreadable or corrupt file counts as signed out
            return None
        return data if isinstance(data, dict) else None

    def set(self, session: Dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(session, fh)
        tmp.replace(self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class DraftCache:
    """
    Opt-in cache of unsaved form drafts keyed by form identity
    (e.g. "order-form", "sheet-form:12").

    Drafts are only written when save() is called and are never sent to the
    server.
    """

    def __init__(self, store: Optional[SessionContext] = None):
        self.store = store or MemorySession()

    def _drafts(self) -> Dict[str, Any]:
        return self.store.get() or {}

    def save(self, key: str, draft: Dict) -> None:
        drafts = self._drafts()
        drafts[key] = draft
        self.store.set(drafts)

    def load(self, key: str) -> Optional[Dict]:
        return self._drafts().get(key)

    def discard(self, key: str) -> None:
        drafts = self._drafts()
        if drafts.pop(key, None) is None:
            return
        if drafts:
            self.store.set(drafts)
        else:
            self.store.clear()


# =============================================================================
# CLIENT
# =============================================================================

class StudioClient:
    """
    HTTP client wrapper with authentication and one method per endpoint.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionContext] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or MemorySession()
        self.client = httpx.Client(base_url=self.base_url, transport=transport, timeout=timeout)

    def _headers(self) -> Dict:
        """Build request headers with optional auth."""
        headers = {"Content-Type": "application/json"}
        token = self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, json: Any = None, params: Optional[Dict] = None) -> Any:
        response = self.client.request(
            method,
            f"/api{path}",
            headers=self._headers(),
            json=json,
            params=params,
        )
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") if isinstance(body, dict) else None
        details = body.get("details") if isinstance(body, dict) else None
        message = message or response.reason_phrase

        if response.status_code == 401:
            self.session.clear()
            raise AuthenticationRequired(401, message, details)
        raise ApiError(response.status_code, message, details)

    def _store_session(self, data: Dict) -> Dict:
        self.session.set({"token": data["token"], "user": data["user"]})
        return data["user"]

    # --- auth / users ---

    def register(self, email: str, password: str, name: str, role: str, organization: Optional[str] = None) -> Dict:
        payload = {"email": email, "password": password, "name": name, "role": role}
        if organization is not None:
            payload["organization"] = organization
        return self._store_session(self._request("POST", "/auth/register", json=payload))

    def login(self, email: str, password: str) -> Dict:
        """Authenticate and store the token; returns the user."""
        return self._store_session(
            self._request("POST", "/auth/login", json={"email": email, "password": password})
        )

    def logout(self) -> None:
        # Tokens are stateless; signing out only forgets the local session
        self.session.clear()

    @property
    def current_user(self) -> Optional[Dict]:
        session = self.session.get()
        return session.get("user") if session else None

    def me(self) -> Dict:
        return self._request("GET", "/users/me")

    def get_user(self, user_id: int) -> Dict:
        return self._request("GET", f"/users/{user_id}")

    def update_user(self, user_id: int, **fields) -> Dict:
        user = self._request("PUT", f"/users/{user_id}", json=fields)
        session = self.session.get()
        if session and session.get("user", {}).get("id") == user_id:
            session["user"] = {**session["user"], "name": user["name"], "organization": user["organization"]}
            self.session.set(session)
        return user

    # --- orders ---

    def list_orders(self, q: Optional[str] = None, queue: Optional[str] = None) -> List[Dict]:
        params = {k: v for k, v in (("q", q), ("queue", queue)) if v}
        return self._request("GET", "/orders", params=params or None)

    def order_stats(self) -> Dict:
        return self._request("GET", "/orders/stats")

    def get_order(self, order_id: int) -> Dict:
        return self._request("GET", f"/orders/{order_id}")

    def create_order(self, draft: Dict) -> Dict:
        return self._request("POST", "/orders", json=draft)

    def update_order(self, order_id: int, patch: Dict) -> Dict:
        return self._request("PUT", f"/orders/{order_id}", json=patch)

    def delete_order(self, order_id: int) -> Dict:
        return self._request("DELETE", f"/orders/{order_id}")

    def log_outcome(self, order_id: int, outcome: Dict) -> Dict:
        return self._request("POST", f"/orders/{order_id}/post-delivery", json=outcome)

    # --- sheets ---

    def create_sheet(self, sheet: Dict) -> Dict:
        return self._request("POST", "/sheets", json=sheet)

    def list_sheets(self, q: Optional[str] = None) -> List[Dict]:
        return self._request("GET", "/sheets", params={"q": q} if q else None)

    def get_sheet(self, sheet_id: int) -> Dict:
        return self._request("GET", f"/sheets/{sheet_id}")

    def add_sheet_item(self, sheet_id: int, item: Dict) -> Dict:
        return self._request("POST", f"/sheets/{sheet_id}/items", json=item)

    def delete_sheet(self, sheet_id: int) -> Dict:
        return self._request("DELETE", f"/sheets/{sheet_id}")

    # --- notifications ---

    def list_notifications(self) -> List[Dict]:
        return self._request("GET", "/notifications")

    def create_notification(
        self,
        title: str,
        message: str,
        type: Optional[str] = None,
        sender: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Dict:
        payload = {"title": title, "message": message, "type": type, "sender": sender, "userId": user_id}
        return self._request("POST", "/notifications", json={k: v for k, v in payload.items() if v is not None})

    def mark_notification_read(self, notification_id: int) -> Dict:
        return self._request("PUT", f"/notifications/{notification_id}/read")

    def mark_all_notifications_read(self) -> Dict:
        return self._request("PUT", "/notifications/read-all")

    def clear_notifications(self) -> Dict:
        return self._request("DELETE", "/notifications")

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
