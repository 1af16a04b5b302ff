from __future__ import annotations

import json
import logging

import pytest

from app.core.config import Settings
from app.core.errors import (
    ConfigurationError,
    ParseFailure,
    PollTimeout,
    RemoteRequestFailure,
    TransportFailure,
)
from app.services.assistant.http_client import HttpResponse
from app.services.assistant.openai_connector import OpenAIConnector
from app.services.assistant.run_poller import PollState, RunPoller, RunStatus

THREADS = "https://api.example.com/v1/threads"
COMPLETIONS = "https://api.example.com/v1/chat/completions"

MESSAGE_LIST = (
    '{"object": "list", "data": ['
    '{"id": "msg_2", "role": "assistant", "content": [{"type": "text", '
    '"text": {"value": "Line one\\nSay \\"hi\\"", "annotations": []}}]}, '
    '{"id": "msg_1", "role": "user", "content": [{"type": "text", '
    '"text": {"value": "hello", "annotations": []}}]}'
    '], "first_id": "msg_2"}'
)


def _settings(**overrides) -> Settings:
    values = dict(
        openai_api_key="sk-test",
        openai_response_model="gpt-4o-mini",
        openai_response_endpoint=COMPLETIONS,
        openai_thread_endpoint=THREADS,
        openai_assistant_id="asst_1",
        run_max_seconds=3,
        run_interval_seconds=1,
    )
    values.update(overrides)
    return Settings(**values)


class _FakeHttp:
    """Replays canned responses keyed by (method, url)."""

    def __init__(self, routes: dict[tuple[str, str], list]):
        self.routes = {key: list(value) for key, value in routes.items()}
        self.requests: list[tuple[str, str, dict, str | None]] = []

    def send(self, method, url, headers=None, body=None):
        self.requests.append((method, url, headers, body))
        queue = self.routes[(method, url)]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


class _FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def _connector(routes, config=None) -> tuple[OpenAIConnector, _FakeHttp]:
    config = config or _settings()
    http = _FakeHttp(routes)
    clock = _FakeClock()
    poller = RunPoller(
        config.run_interval_seconds,
        config.run_max_seconds,
        clock=clock,
        sleep=clock.sleep,
    )
    connector = OpenAIConnector(logging.getLogger("test-connector"), config, http, poller)
    return connector, http


def _thread_routes(statuses: list) -> dict:
    return {
        ("POST", f"{THREADS}/thread_1/messages"): [HttpResponse(200, '{"id": "msg_1", "object": "thread.message"}')],
        ("POST", f"{THREADS}/thread_1/runs"): [HttpResponse(200, '{"id": "run_1", "object": "thread.run", "status": "queued"}')],
        ("GET", f"{THREADS}/thread_1/runs/run_1"): statuses,
        ("GET", f"{THREADS}/thread_1/messages"): [HttpResponse(200, MESSAGE_LIST)],
    }


def _status(value: str) -> HttpResponse:
    return HttpResponse(200, f'{{"id": "run_1", "object": "thread.run", "status": "{value}"}}')


def test_constructor_rejects_missing_configuration():
    http = _FakeHttp({})
    with pytest.raises(ConfigurationError) as exc_info:
        OpenAIConnector(logging.getLogger("test"), _settings(openai_api_key="", openai_assistant_id=None), http)
    assert exc_info.value.missing == ["OPENAI_API_KEY", "OPENAI_ASSISTANT_ID"]
    assert http.requests == []


def test_prompt_posts_completion_request_and_returns_content():
    body = '{"id": "chatcmpl-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": "Use \\"Python\\"."}}]}'
    connector, http = _connector({("POST", COMPLETIONS): [HttpResponse(200, body)]})

    assert connector.prompt('What is "best"?') == 'Use "Python".'

    method, url, headers, sent = http.requests[0]
    assert headers["Authorization"] == "Bearer sk-test"
    assert "OpenAI-Beta" not in headers
    assert json.loads(sent) == {
        "model": "gpt-4o-mini",
        "messages": [{"role": "user", "content": 'What is "best"?'}],
    }


def test_create_thread_returns_id():
    connector, http = _connector({("POST", THREADS): [HttpResponse(200, '{"id": "thread_123", "object": "thread"}')]})

    assert connector.create_thread() == "thread_123"
    _, _, headers, body = http.requests[0]
    assert headers["OpenAI-Beta"] == "assistants=v2"
    assert body == ""


def test_create_thread_non_2xx_raises_remote_failure():
    connector, _ = _connector({("POST", THREADS): [HttpResponse(401, '{"error": "bad key"}')]})

    with pytest.raises(RemoteRequestFailure) as exc_info:
        connector.create_thread()
    assert exc_info.value.status_code == 401
    assert exc_info.value.response_body == '{"error": "bad key"}'


def test_create_thread_unexpected_body_raises_parse_failure():
    connector, _ = _connector({("POST", THREADS): [HttpResponse(200, '{"object": "thread"}')]})

    with pytest.raises(ParseFailure) as exc_info:
        connector.create_thread()
    assert exc_info.value.target == "id"


def test_prompt_thread_polls_until_completed():
    connector, http = _connector(
        _thread_routes([_status("queued"), _status("in_progress"), _status("completed")])
    )

    assert connector.prompt_thread("hello", "thread_1") == 'Line one\nSay "hi"'

    urls = [(method, url) for method, url, _, _ in http.requests]
    assert urls == [
        ("POST", f"{THREADS}/thread_1/messages"),
        ("POST", f"{THREADS}/thread_1/runs"),
        ("GET", f"{THREADS}/thread_1/runs/run_1"),
        ("GET", f"{THREADS}/thread_1/runs/run_1"),
        ("GET", f"{THREADS}/thread_1/runs/run_1"),
        ("GET", f"{THREADS}/thread_1/messages"),
    ]
    assert json.loads(http.requests[1][3]) == {"assistant_id": "asst_1"}


def test_prompt_thread_times_out():
    connector, http = _connector(_thread_routes([_status("in_progress")]))

    with pytest.raises(PollTimeout) as exc_info:
        connector.prompt_thread("hello", "thread_1")
    assert exc_info.value.response_body == "Time: 3, Interval: 1"
    assert ("GET", f"{THREADS}/thread_1/messages") not in [(m, u) for m, u, _, _ in http.requests]


def test_prompt_thread_transport_failure_during_poll():
    connector, _ = _connector(_thread_routes([_status("queued"), TransportFailure("timed out")]))

    with pytest.raises(TransportFailure) as exc_info:
        connector.prompt_thread("hello", "thread_1")
    assert exc_info.value.detail == "timed out"


def test_confirm_run_completion_returns_outcome():
    connector, _ = _connector(_thread_routes([_status("cancelled")]))

    outcome = connector.confirm_run_completion("thread_1", "run_1")
    assert outcome.state is PollState.EXPIRED
    assert outcome.last_status is RunStatus.CANCELLED


def test_get_thread_response_empty_list_raises_parse_failure():
    connector, _ = _connector({("GET", f"{THREADS}/t/messages"): [HttpResponse(200, '{"object": "list", "data": []}')]})

    with pytest.raises(ParseFailure) as exc_info:
        connector.get_thread_response("t")
    assert exc_info.value.target == "object #1 at depth 1"


def test_add_context_to_thread_appends_message():
    connector, http = _connector(
        {("POST", f"{THREADS}/t/messages"): [HttpResponse(200, '{"id": "msg_ctx"}')]}
    )

    assert connector.add_context_to_thread("2024-04-02", "13:45", "t") == "msg_ctx"
    assert json.loads(http.requests[0][3]) == {
        "role": "user",
        "content": "This conversation started at date 2024-04-02, time 13:45",
    }
