from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import Settings, settings as default_settings


log = logging.getLogger("uvicorn")

# Methods that must be called without the "auth" member.
_ANONYMOUS_METHODS = {"apiinfo.version", "user.login", "user.checkAuthentication"}


class ApiError(RuntimeError):
    """Error object returned by the monitoring backend."""

    def __init__(self, method: str, code: int, message: str, data: str = "") -> None:
        self.method = method
        self.code = code
        self.message = message
        self.data = data
        detail = f"{message} {data}".strip()
        super().__init__(f"{method}: [{code}] {detail}")


def _as_list(result: Any) -> List[Dict[str, Any]]:
    # "preservekeys" answers are objects keyed by id.
    if isinstance(result, dict):
        return list(result.values())
    if isinstance(result, list):
        return result
    return []


class ApiClient:
    """Synchronous JSON-RPC client for the monitoring backend.

    Failures are never retried: transport errors and HTTP status errors are
    raised as ``httpx`` exceptions, error payloads as :class:`ApiError`.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        s: Optional[Settings] = None,
    ) -> None:
        s = s or default_settings
        self.url = url or s.api_url
        self.token = s.api_token if token is None else token
        self._ids = itertools.count(1)
        self._client = httpx.Client(
            timeout=s.api_timeout_seconds if timeout is None else timeout,
            headers={"content-type": "application/json-rpc"},
            transport=transport,
        )

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def call(self, method: str, params: Any = None) -> Any:
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "params": {} if params is None else params,
            "id": next(self._ids),
        }
        if method not in _ANONYMOUS_METHODS and self.token:
            payload["auth"] = self.token

        log.debug("api call %s params=%s", method, payload["params"])
        resp = self._client.post(self.url, json=payload)
        resp.raise_for_status()
        data = resp.json()

        err = data.get("error")
        if err:
            raise ApiError(
                method,
                int(err.get("code") or 0),
                str(err.get("message") or ""),
                str(err.get("data") or ""),
            )
        return data.get("result")

    def get(self, entity: str, **params: Any) -> List[Dict[str, Any]]:
        """``<entity>.get`` normalized to a list of records."""
        return _as_list(self.call(f"{entity}.get", params))

    def get_by_id(self, entity: str, pk: str, **params: Any) -> Dict[int, Dict[str, Any]]:
        """``<entity>.get`` keyed by primary key, the records may omit ``pk``."""
        params["preservekeys"] = True
        result = self.call(f"{entity}.get", params)
        if isinstance(result, dict):
            return {int(k): {pk: k, **v} for k, v in result.items()}
        return {int(r[pk]): r for r in _as_list(result)}

    def count(self, entity: str, **params: Any) -> int:
        params["countOutput"] = True
        return int(self.call(f"{entity}.get", params) or 0)

    def check_authentication(self, sessionid: Optional[str] = None) -> Dict[str, Any]:
        return self.call("user.checkAuthentication", {"sessionid": sessionid or self.token}) or {}
