import json
from typing import Any, Dict, Optional, Tuple
from urllib import error, request
from urllib.parse import urlparse

from data.errors import StoreError
from data.models import SessionLogEntry


class HttpSessionLog:
    """
    Отправляет завершённые сессии на backend (POST /v1/sessions).

    Запись "выстрелил и забыл": при ошибке бросаем StoreError,
    контроллер сессии логирует её и идёт дальше. Повторов нет.
    """

    def __init__(
        self,
        endpoint_url: str,
        api_key: str,
        client_version: str = "cogtrain-dev",
        timeout_sec: float = 2.5,
    ) -> None:
        self.endpoint_url = endpoint_url.strip().rstrip("/")
        self.api_key = api_key.strip()
        self.client_version = client_version
        self.timeout_sec = max(0.5, timeout_sec)
        self.last_error: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint_url and self.api_key)

    @staticmethod
    def is_valid_endpoint(url: str) -> bool:
        parsed = urlparse((url or "").strip())
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    def write(self, entry: SessionLogEntry) -> None:
        if not self.enabled:
            self.last_error = "disabled"
            raise StoreError("session endpoint or api key not configured")
        body = {
            "api_key": self.api_key,
            "client_version": self.client_version,
            "session": entry.to_dict(),
        }
        data = self._request("POST", f"{self.endpoint_url}/v1/sessions", body)
        if data.get("ok") is not True:
            self.last_error = "invalid_server_response"
            raise StoreError(f"server rejected session: {data}")
        self.last_error = ""

    def check_connection(self) -> Tuple[bool, str]:
        if not self.is_valid_endpoint(self.endpoint_url):
            self.last_error = "invalid_url"
            return False, "invalid endpoint url"
        try:
            data = self._request("GET", f"{self.endpoint_url}/health")
        except StoreError:
            return False, "no connection"
        if data.get("ok") is True:
            self.last_error = ""
            return True, "connected"
        self.last_error = "health_payload_error"
        return False, "unexpected health response"

    def _request(self, method: str, url: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = None
        headers = {}
        if body is not None:
            payload = json.dumps(body, ensure_ascii=False).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = request.Request(url, data=payload, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout_sec) as resp:
                raw = resp.read().decode("utf-8") or "{}"
                data = json.loads(raw)
        except (error.URLError, error.HTTPError, TimeoutError, OSError, json.JSONDecodeError) as exc:
            self.last_error = "connection_error"
            raise StoreError(f"{method} {url} failed") from exc
        if not isinstance(data, dict):
            self.last_error = "invalid_server_response"
            raise StoreError(f"{method} {url} returned non-object payload")
        return data
