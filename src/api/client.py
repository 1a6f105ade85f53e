# thin HTTP layer over the backend REST service
import asyncio
from typing import Any, Dict, Optional

import requests

from utils.errors import AuthenticationError, NetworkError
from utils.logger import get_logger

_logger = get_logger(__name__)


def _error_message_from_response(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    text = (response.text or "").strip()
    return text[:200] if text else f"HTTP {response.status_code}"


class ApiClient:
    """
    requests.Session bound to the backend base URL.

    Injects the bearer token, converts transport failures and non-2xx
    answers into NetworkError, and drops the token on 401. The `a*`
    methods run the blocking call in a thread for use from Textual workers.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token: Optional[str] = None
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            _logger.warning(f"{method} {path} failed: {exc}")
            raise NetworkError(f"Could not reach the server: {exc}") from exc

        if response.status_code == 401:
            self.token = None
            raise AuthenticationError(
                "Session expired, please log in again.", status_code=401
            )
        if not response.ok:
            message = _error_message_from_response(response)
            _logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise NetworkError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(f"Invalid JSON from {path}") from exc

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    async def aget(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await asyncio.to_thread(self.get, path, params)

    async def apost(self, path: str, json: Any = None) -> Any:
        return await asyncio.to_thread(self.post, path, json)

    async def aput(self, path: str, json: Any = None) -> Any:
        return await asyncio.to_thread(self.put, path, json)

    # ---------------------------
    # Auth
    # ---------------------------

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """
        POST /api/auth/login. Stores the returned token on the client.
        Returns the user object of the response.
        """
        data = await self.apost(
            "/api/auth/login", {"username": username, "password": password}
        )
        if not isinstance(data, dict) or not data.get("token"):
            raise AuthenticationError("Invalid username or password.", status_code=401)
        self.token = data["token"]
        user = data.get("user")
        if not isinstance(user, dict):
            user = await self.aget("/api/auth/me")
        return user or {}

    def logout(self) -> None:
        self.token = None

    def close(self) -> None:
        self._session.close()
