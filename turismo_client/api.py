from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from turismo_client.config import Config


@dataclass
class APIError(Exception):
    status_code: int
    message: str
    details: Any = None

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.message}"


class TurismoAPI:
    """Thin synchronous client for the tourism API."""

    def __init__(
        self,
        base_url: str = Config.API_BASE_URL,
        token_getter: Callable[[], Optional[str]] = lambda: None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = Config.REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_getter = token_getter
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self, auth: bool) -> Dict[str, str]:
        h = {"Accept": "application/json"}
        if auth:
            token = self.token_getter()
            if token:
                h["Authorization"] = f"Bearer {token}"
        return h

    def request(self, method: str, path: str, *, auth: bool = True,
                params: Optional[dict] = None,
                json: Optional[dict] = None,
                data: Optional[dict] = None,
                files: Optional[dict] = None) -> Any:
        try:
            resp = self.session.request(
                method=method.upper(),
                url=f"{self.base_url}{path}",
                headers=self._headers(auth),
                params=params,
                json=json,
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise APIError(0, f"Network error: {e}") from e

        if resp.status_code == 204:
            return None

        try:
            payload = resp.json()
        except ValueError:
            payload = resp.text

        if resp.status_code >= 400:
            msg = None
            if isinstance(payload, dict):
                msg = payload.get("detail") or payload.get("message")
            raise APIError(resp.status_code, str(msg) if msg else f"HTTP {resp.status_code}", payload)

        return payload

    # --- Auth ---
    def register(self, email: str, password: str, username: str | None = None) -> Any:
        body = {"email": email, "password": password}
        if username:
            body["username"] = username
        return self.request("POST", "/auth/register", auth=False, json=body)

    def login(self, email: str, password: str) -> str:
        payload = self.request("POST", "/auth/login", auth=False, json={"email": email, "password": password})
        return payload.get("access_token", "") if isinstance(payload, dict) else ""

    def me(self) -> Any:
        return self.request("GET", "/me")

    # --- Places ---
    def places(self, **filters) -> Any:
        params = {k: v for k, v in filters.items() if v not in (None, "", [])}
        return self.request("GET", "/places", auth=False, params=params)

    def place(self, place_id: str) -> Any:
        return self.request("GET", f"/places/{place_id}", auth=False)

    def create_place(self, name: str, **fields) -> Any:
        return self.request("POST", "/places", json={"name": name, **fields})

    # --- Ratings ---
    def rate_place(self, place_id: str, rating: int) -> Any:
        return self.request("POST", f"/places/{place_id}/rate", json={"rating": rating})

    def user_rating(self, place_id: str) -> int:
        payload = self.request("GET", f"/places/{place_id}/user-rating")
        return int(payload.get("rating") or 0) if isinstance(payload, dict) else 0

    def rating_stats(self, place_id: str) -> Any:
        payload = self.request("GET", f"/ratings/stats/place/{place_id}", auth=False)
        return payload.get("stats") if isinstance(payload, dict) else None

    def delete_rating(self, rating_id: str) -> Any:
        return self.request("DELETE", f"/ratings/{rating_id}")

    # --- Comments / photos ---
    def place_comments(self, place_id: str) -> Any:
        return self.request("GET", f"/comments/place/{place_id}")

    def add_comment(self, content: str, place_id: str | None = None, parent_comment_id: str | None = None) -> Any:
        return self.request("POST", "/comments", json={
            "content": content, "place_id": place_id, "parent_comment_id": parent_comment_id,
        })

    def place_photos(self, place_id: str) -> Any:
        return self.request("GET", f"/photos/place/{place_id}", auth=False)

    def toggle_photo_reaction(self, photo_id: str, reaction_type: str = "like") -> Any:
        return self.request("POST", f"/photos/{photo_id}/reactions", json={"reaction_type": reaction_type})
