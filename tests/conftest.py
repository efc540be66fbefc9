"""Shared pytest fixtures."""

from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

from directline.conversation import ConversationSession
from directline.models import SessionConfig
from utils.direct_line_client import DirectLineClient


class InlineExecutor:
    """Runs submitted work on the calling thread so tests stay deterministic."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


@pytest.fixture
def config():
    return SessionConfig(
        base_url="https://bot.example.test/v3/directline",
        secret="s3cret",
        user_id="u1",
        user_name="tester",
        poll_interval=3600.0,
        idle_timeout=0,
        create_retries=3,
        send_retries=1,
        poll_retries=1,
        retry_backoff=0.0,
        request_timeout=5.0,
    )


@pytest.fixture
def client():
    return MagicMock(spec=DirectLineClient)


@pytest.fixture
def make_session(config, client):
    """Build sessions wired to the mock client; polling timers are stopped afterwards."""
    sessions = []

    def _make(**kwargs):
        kwargs.setdefault("config", config)
        kwargs.setdefault("client", client)
        kwargs.setdefault("executor", InlineExecutor())
        session = ConversationSession(**kwargs)
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.stop_polling()


@pytest.fixture
def recorder():
    """Collects ``(event, args)`` tuples from every channel of a session."""

    class _Recorder:
        def __init__(self):
            self.events = []

        def attach(self, session):
            for name in session.event_names():
                session.on(name, lambda *args, _name=name: self.events.append((_name, args)))
            return self

        def names(self):
            return [name for name, _ in self.events]

    return _Recorder()
