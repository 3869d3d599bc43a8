"""Global pytest configuration."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import AsyncGenerator
from typing import Any, Callable

import httpx
import pytest

from phishshield.badge import BadgeStateMachine
from phishshield.cache import VerdictCache
from phishshield.classifier import ClassifierClient
from phishshield.notifications import NotificationThrottle
from phishshield.scanner import ScanDispatcher

API_URL = "http://classifier.test"


@pytest.fixture(scope="session")
def event_loop() -> AsyncGenerator[asyncio.AbstractEventLoop, None]:
    """Provide a shared event loop for async tests and fixtures."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        loop.close()


def _get_loop(request: pytest.FixtureRequest) -> asyncio.AbstractEventLoop:
    try:
        loop = request.getfixturevalue("event_loop")
    except pytest.FixtureLookupError:
        loop = asyncio.new_event_loop()
    if loop.is_closed():
        loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    return loop


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        testargs = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop = testargs.get("event_loop") or asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        loop.run_until_complete(pyfuncitem.obj(**testargs))
        return True
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_fixture_setup(fixturedef, request):  # type: ignore[override]
    func = fixturedef.func
    if inspect.iscoroutinefunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        return loop.run_until_complete(func(**kwargs))

    if inspect.isasyncgenfunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        agen = func(**kwargs)
        value = loop.run_until_complete(agen.__anext__())

        def finalize() -> None:
            try:
                loop.run_until_complete(agen.__anext__())
            except StopAsyncIteration:
                pass

        request.addfinalizer(finalize)
        return value

    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio support")


class FakeClock:
    """Manually advanced clock for TTL and eviction tests."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def now(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class RecordingShell:
    """BrowserShell double that remembers every command."""

    def __init__(self):
        self.badges: list[tuple[Any, str, str | None]] = []
        self.notifications: list[dict] = []
        self.injections: list[tuple[Any, list[str]]] = []
        self.sent: list[tuple[Any, dict]] = []

    async def set_badge(self, tab_id, text, color):
        self.badges.append((tab_id, text, color))

    async def show_notification(self, alert):
        self.notifications.append(alert)

    async def inject_content_script(self, tab_id, files):
        self.injections.append((tab_id, list(files)))

    async def send_to_tab(self, tab_id, message):
        self.sent.append((tab_id, message))


class FakeClassifierService:
    """Scripted /api/check-url backend behind an httpx.MockTransport."""

    def __init__(self):
        self.verdicts: dict[str, Any] = {}
        self.default: Any = {"risk": "safe", "score": 0.05, "reasons": ["has_https"]}
        self.requests: list[tuple[str, str, dict | None]] = []
        self.health_status = 200
        self.list_response: dict = {"ok": True}

    @property
    def check_calls(self) -> list[str]:
        return [body["url"] for method, path, body in self.requests if path == "/api/check-url"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))

        if request.url.path == "/":
            return httpx.Response(self.health_status, json={"status": "ok"})
        if request.url.path == "/api/check-url":
            outcome = self.verdicts.get(body["url"], self.default)
            if isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, httpx.Response):
                return outcome
            return httpx.Response(200, json=outcome)
        if request.url.path in ("/api/report-url", "/api/whitelist", "/api/blacklist"):
            return httpx.Response(200, json=self.list_response)
        return httpx.Response(404, json={"detail": "Not Found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def shell() -> RecordingShell:
    return RecordingShell()


@pytest.fixture
def service() -> FakeClassifierService:
    return FakeClassifierService()


@pytest.fixture
def classifier(service: FakeClassifierService) -> ClassifierClient:
    return ClassifierClient(API_URL, timeout_seconds=5, transport=service.transport())


class StaticSettings:
    """In-memory stand-in for SettingsStore where persistence is not under test."""

    def __init__(self, values: dict | None = None, fail: bool = False):
        self.values = dict(values or {})
        self.fail = fail
        self.page_stats: dict[str, dict] = {}

    async def get_bool(self, key: str, default: bool = True) -> bool:
        if self.fail:
            raise RuntimeError("storage offline")
        value = self.values.get(key, default)
        return value if isinstance(value, bool) else default

    async def save_page_links_stats(self, page_url: str, stats: dict) -> None:
        self.page_stats[page_url] = dict(stats)


@pytest.fixture
def make_dispatcher(clock, shell, classifier) -> Callable[..., ScanDispatcher]:
    def _make(*, settings=None, ttl: float = 300, max_size: int = 1000, timeout: float = 5.0):
        settings = settings if settings is not None else StaticSettings()
        return ScanDispatcher(
            cache=VerdictCache(ttl_seconds=ttl, max_size=max_size, clock=clock),
            classifier=classifier,
            badges=BadgeStateMachine(shell),
            notifier=NotificationThrottle(settings, shell),
            settings=settings,
            timeout_seconds=timeout,
        )

    return _make
