from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

import pytest

from eventboard.config import Settings


Handler = Callable[[Dict[str, Any]], Any]


@dataclass
class FakeApi:
    """Stands in for ApiClient; answers ``<entity>.get`` calls from handlers."""

    handlers: Dict[str, Handler] = field(default_factory=dict)
    calls: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)
    auth: Dict[str, Any] = field(default_factory=lambda: {"userid": 1, "alias": "Admin", "type": 3})

    def call(self, method: str, params: Any = None) -> Any:
        params = dict(params or {})
        self.calls.append((method, params))
        entity = method.split(".")[0]
        handler = self.handlers.get(entity)
        if handler is None:
            return []
        return handler(params)

    def get(self, entity: str, **params: Any) -> List[Dict[str, Any]]:
        result = self.call(f"{entity}.get", params)
        return list(result.values()) if isinstance(result, dict) else list(result)

    def get_by_id(self, entity: str, pk: str, **params: Any) -> Dict[int, Dict[str, Any]]:
        params["preservekeys"] = True
        result = self.call(f"{entity}.get", params)
        if isinstance(result, dict):
            return {int(k): {pk: k, **v} for k, v in result.items()}
        return {int(r[pk]): r for r in result}

    def count(self, entity: str, **params: Any) -> int:
        params["countOutput"] = True
        return int(self.call(f"{entity}.get", params))

    def check_authentication(self, sessionid: Any = None) -> Dict[str, Any]:
        self.calls.append(("user.checkAuthentication", {"sessionid": sessionid}))
        return dict(self.auth)

    def methods(self) -> List[str]:
        return [m for m, _ in self.calls]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        timezone="UTC",
        date_time_format="%Y-%m-%d %H:%M:%S",
        tag_count_default=3,
        event_window_limit=20,
        search_limit=1000,
        blink_period_seconds=1800,
    )


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()
