"""
Application wiring tests.
"""

from types import SimpleNamespace

import uvicorn

from app.core.config import get_settings
from app.main import app, lifespan, run


def test_run_serves_on_configured_address(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    run()

    settings = get_settings()
    (args, kwargs), = calls
    assert args == (app,)
    assert kwargs["host"] == settings.host
    assert kwargs["port"] == settings.port


async def test_lifespan_disposes_engine(monkeypatch):
    disposed = []

    async def fake_dispose():
        disposed.append(True)

    monkeypatch.setattr("app.main.engine", SimpleNamespace(dispose=fake_dispose))
    async with lifespan(app):
        assert disposed == []
    assert disposed == [True]
