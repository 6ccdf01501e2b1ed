from __future__ import annotations

import base64
import json
import logging
from typing import Dict, List, Optional

import httpx
import pytest

from appbuilder.settings import Settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _propagate_appbuilder_logs():
    # configure_logging() turns propagation off; caplog listens on the root logger
    logging.getLogger("appbuilder").propagate = True
    yield


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        EXPECTED_SECRET="s",
        GITHUB_USERNAME="octo",
        GITHUB_TOKEN="gh-token",
        OPENAI_API_KEY="llm-key",
        REPO_SETTLE_SECONDS=2,
        REPO_READY_ATTEMPTS=3,
        NOTIFY_MAX_ATTEMPTS=5,
    )


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


# -----------------------------
# Fake GitHub REST API
# -----------------------------
class FakeGitHub:
    """
    Minimal stand-in for the endpoints the publisher touches. ``fail`` maps a
    (method, path suffix) pair to the status code to answer with instead.
    """

    def __init__(self, owner: str = "octo", fail: Optional[Dict[tuple, int]] = None, ready_after: int = 0):
        self.owner = owner
        self.fail = fail or {}
        self.ready_after = ready_after
        self.requests: List[httpx.Request] = []
        self.files: Dict[str, str] = {}
        self._ready_polls = 0

    @property
    def calls(self) -> List[tuple]:
        return [(r.method, r.url.path) for r in self.requests]

    def _failure(self, request: httpx.Request) -> Optional[int]:
        for (method, suffix), status in self.fail.items():
            if request.method == method and request.url.path.endswith(suffix):
                return status
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self._failure(request)
        if status is not None:
            return httpx.Response(status, json={"message": "nope"})

        path = request.url.path
        if request.method == "POST" and path == "/user/repos":
            body = json.loads(request.content)
            return httpx.Response(201, json={"html_url": f"https://github.com/{self.owner}/{body['name']}"})
        if request.method == "GET" and path.startswith("/repos/"):
            self._ready_polls += 1
            if self._ready_polls > self.ready_after:
                return httpx.Response(200, json={"name": path.rsplit("/", 1)[-1]})
            return httpx.Response(404, json={"message": "Not Found"})
        if request.method == "PUT" and "/contents/" in path:
            name = path.split("/contents/", 1)[1]
            body = json.loads(request.content)
            self.files[name] = base64.b64decode(body["content"]).decode("utf-8")
            return httpx.Response(201, json={"commit": {"sha": f"sha-{name}"}})
        if request.method == "POST" and path.endswith("/pages"):
            return httpx.Response(201, json={"html_url": "https://octo.github.io/x/"})
        return httpx.Response(404, json={"message": "unexpected"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


# -----------------------------
# Fake evaluator webhook
# -----------------------------
class FakeEvaluator:
    def __init__(self, statuses: Optional[List[int]] = None, default: int = 200):
        self.statuses = list(statuses or [])
        self.default = default
        self.received: List[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.received.append(json.loads(request.content))
        status = self.statuses.pop(0) if self.statuses else self.default
        return httpx.Response(status, json={"ok": status < 300})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def evaluator() -> FakeEvaluator:
    return FakeEvaluator()


def _make_request(**overrides):
    from appbuilder.models import BuildRequest

    data = {
        "secret": "s",
        "email": "student@example.com",
        "task": "todo-app",
        "round": 1,
        "nonce": "abc",
        "brief": "a todo app",
        "checks": ["add items", "delete items"],
        "evaluation_url": "https://eval.example/cb",
        "attachments": [],
    }
    data.update(overrides)
    return BuildRequest(**data)


@pytest.fixture
def make_request():
    return _make_request
