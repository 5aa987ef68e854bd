"""HTTP client for the StickyBoard REST API."""
import logging

import requests

from . import config
from .errors import ServerError, error_for_status

logger = logging.getLogger(__name__)


class NotesApi:
    def __init__(self, base_url=None, token=None, session=None, timeout=None):
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout or config.API_TIMEOUT

    def _request(self, method, path, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ServerError(f"Could not reach {self.base_url}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400:
            message = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("message")
            logger.info("%s %s -> %s %s", method, url, resp.status_code, message)
            raise error_for_status(resp.status_code, message)
        return data

    # ---- Auth ----

    def register(self, email, password, user_name=None):
        payload = {"email": email, "password": password}
        if user_name:
            payload["user_name"] = user_name
        data = self._request("POST", "/api/auth/register", json=payload)
        self.token = data["token"]
        return data

    def login(self, email, password):
        data = self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        self.token = data["token"]
        return data

    def me(self):
        return self._request("GET", "/api/auth/me")

    # ---- Notes ----

    def list_notes(self, scope=None):
        params = {"scope": scope} if scope else None
        return self._request("GET", "/api/notes", params=params) or []

    def get_note(self, note_id):
        return self._request("GET", f"/api/notes/{note_id}")

    def create_note(self, fields):
        return self._request("POST", "/api/notes", json=fields)

    def update_note(self, note_id, fields):
        return self._request("PUT", f"/api/notes/{note_id}", json=fields)

    def delete_note(self, note_id):
        return self._request("DELETE", f"/api/notes/{note_id}")

    # ---- Users ----

    def list_users(self):
        return self._request("GET", "/api/users") or []

    def get_user(self, user_id):
        return self._request("GET", f"/api/users/{user_id}")

    def update_user(self, user_id, fields):
        return self._request("PUT", f"/api/users/{user_id}", json=fields)

    def delete_user(self, user_id):
        return self._request("DELETE", f"/api/users/{user_id}")
