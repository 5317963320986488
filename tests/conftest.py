"""
Shared fakes for the engine tests.

FakeSession stands in for requests.Session: it records every call and
replays scripted responses (or a handler's responses), so clients can be
exercised without the network.
"""

import threading
from typing import Any, Callable, Dict, List, Optional

import pytest


NOT_JSON = object()


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        *,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self._json_data = {} if json_data is None else json_data
        self.text = text or ("" if json_data is NOT_JSON else str(self._json_data))
        self.headers: Dict[str, str] = headers or {}

    def json(self) -> Any:
        if self._json_data is NOT_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json_data


class FakeSession:
    """
    Replays responses in order (the last one repeats), or asks ``handler``.

    A scripted entry may be a FakeResponse, a plain payload (served as 200),
    or an exception instance (raised from request()).
    """

    def __init__(self, *responses: Any, handler: Optional[Callable[[Dict[str, Any]], Any]] = None):
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False
        self._responses = list(responses)
        self._handler = handler
        self._lock = threading.Lock()

    def request(self, method, url, params=None, json=None, headers=None, cookies=None, timeout=None):
        call = {
            "method": method,
            "url": url,
            "params": params,
            "json": json,
            "headers": headers,
            "cookies": cookies,
            "timeout": timeout,
        }
        with self._lock:
            self.calls.append(call)
            if self._handler is not None:
                result = self._handler(call)
            elif len(self._responses) > 1:
                result = self._responses.pop(0)
            elif self._responses:
                result = self._responses[0]
            else:
                result = FakeResponse(200, {})

        if isinstance(result, BaseException):
            raise result
        if not isinstance(result, FakeResponse):
            result = FakeResponse(200, result)
        return result

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session():
    """Factory: fake_session(payload, ...) or fake_session(handler=fn)."""
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def not_json():
    return NOT_JSON
