from __future__ import annotations

from types import SimpleNamespace

import pytest

from log_fanout.config import build_settings
from log_fanout.runtime import _server


class FakeServer:
    instances: list["FakeServer"] = []

    def __init__(self, config: object) -> None:
        self.config = config
        self.started = True
        self.should_exit = False
        self.ran = False
        FakeServer.instances.append(self)

    def run(self) -> None:
        self.ran = True


@pytest.fixture
def fake_uvicorn(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    configs: list[dict[str, object]] = []

    def fake_config(app: object, **kwargs: object) -> SimpleNamespace:
        configs.append({"app": app, **kwargs})
        return SimpleNamespace(app=app, **kwargs)

    FakeServer.instances = []
    monkeypatch.setattr(_server.uvicorn, "Config", fake_config)
    monkeypatch.setattr(_server.uvicorn, "Server", FakeServer)
    return configs


def test_serve_binds_the_configured_address(fake_uvicorn: list[dict[str, object]]) -> None:
    _server.serve(build_settings({}, address="127.0.0.1:9123", static_dir=""))

    assert fake_uvicorn[0]["host"] == "127.0.0.1"
    assert fake_uvicorn[0]["port"] == 9123
    assert fake_uvicorn[0]["log_config"] is None
    assert FakeServer.instances[0].ran


def test_open_flag_launches_browser_on_home_page(fake_uvicorn: list[dict[str, object]], monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[str] = []
    monkeypatch.setattr(_server.webbrowser, "open_new_tab", opened.append)
    server = FakeServer(config=None)

    _server._open_when_started(server, "http://localhost:9000/static/index.html")

    assert opened == ["http://localhost:9000/static/index.html"]


def test_browser_is_not_opened_when_server_never_starts(monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[str] = []
    monkeypatch.setattr(_server.webbrowser, "open_new_tab", opened.append)
    server = SimpleNamespace(started=False, should_exit=True)

    _server._open_when_started(server, "http://localhost:9000/static/index.html", timeout=0.1)

    assert opened == []
