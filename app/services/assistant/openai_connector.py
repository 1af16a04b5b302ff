"""Connector for OpenAI chat completions and Assistants v2 threads over raw HTTP."""

from __future__ import annotations

import json
import logging

from app.core.config import OPENAI_BETA_HEADER, Settings, settings
from app.core.errors import PollTimeout, RemoteRequestFailure, TransportFailure
from app.services.text_normalization import normalize_message_text
from .extraction import extract_field, extract_nth_object
from .http_client import HttpClient, HttpResponse
from .run_poller import PollOutcome, PollState, RunPoller, RunStatus


class OpenAIConnector:
    """Sends prompts to OpenAI and drives assistant runs on conversation threads.

    Threads are saved conversations between a user and an assistant; a run
    asks the assistant to add a reply to a thread and finishes asynchronously.
    """

    def __init__(
        self,
        logger: logging.Logger,
        config: Settings = settings,
        http: HttpClient | None = None,
        poller: RunPoller | None = None,
    ) -> None:
        config.verify()
        self.logger = logger
        self.config = config
        self.http = http or HttpClient(logger, timeout=config.request_timeout_seconds)
        self.poller = poller or RunPoller(
            config.run_interval_seconds, config.run_max_seconds, logger=logger
        )
        self.logger.info("OpenAIConnector initialized for assistant %s.", config.openai_assistant_id)

    # ----------------------- Requests -----------------------
    def _headers(self, thread_api: bool) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.openai_api_key}",
            "Content-Type": "application/json",
        }
        if thread_api:
            headers["OpenAI-Beta"] = OPENAI_BETA_HEADER
        return headers

    def _send(self, action: str, method: str, url: str, payload: dict | None = None, *, thread_api: bool = True) -> HttpResponse:
        body = None
        if payload is not None:
            body = json.dumps(payload, ensure_ascii=False)
        elif method == "POST":
            body = ""
        response = self.http.send(method, url, self._headers(thread_api), body)
        if not response.ok:
            self.logger.warning("Failed to %s: status %d", action, response.status_code)
            raise RemoteRequestFailure(action, response.status_code, response.body)
        return response

    def _thread_url(self, *parts: str) -> str:
        return "/".join([self.config.openai_thread_endpoint.rstrip("/"), *parts])

    # ----------------------- Public API -----------------------
    def prompt(self, prompt: str) -> str:
        """Send a one-off prompt to the response model and return its reply."""

        payload = {
            "model": self.config.openai_response_model,
            "messages": [{"role": "user", "content": prompt}],
        }
        response = self._send(
            "prompt OpenAI", "POST", self.config.openai_response_endpoint, payload, thread_api=False
        )
        content = extract_field("content", response.body).unwrap(response.body)
        return normalize_message_text(content)

    def create_thread(self) -> str:
        """Create an empty thread and return its id."""

        response = self._send("create OpenAI thread", "POST", self._thread_url())
        thread_id = extract_field("id", response.body).unwrap(response.body)
        self.logger.info("Created thread %s.", thread_id)
        return thread_id

    def message_thread(self, message: str, thread_id: str) -> str:
        """Append a user message to a thread and return the new message id."""

        response = self._send(
            "message OpenAI thread",
            "POST",
            self._thread_url(thread_id, "messages"),
            {"role": "user", "content": message},
        )
        return extract_field("id", response.body).unwrap(response.body)

    def add_context_to_thread(self, date: str, time: str, thread_id: str) -> str:
        return self.message_thread(
            f"This conversation started at date {date}, time {time}", thread_id
        )

    def run_assistant_on_thread(self, thread_id: str, assistant_id: str | None = None) -> str:
        """Start a run of the assistant on ``thread_id`` and return the run id."""

        response = self._send(
            "run assistant on thread",
            "POST",
            self._thread_url(thread_id, "runs"),
            {"assistant_id": assistant_id or self.config.openai_assistant_id},
        )
        return extract_field("id", response.body).unwrap(response.body)

    def get_run_status(self, thread_id: str, run_id: str) -> RunStatus:
        response = self._send("get run", "GET", self._thread_url(thread_id, "runs", run_id))
        return RunStatus.parse(extract_field("status", response.body).unwrap(response.body))

    def confirm_run_completion(self, thread_id: str, run_id: str) -> PollOutcome:
        return self.poller.poll(lambda: self.get_run_status(thread_id, run_id))

    def prompt_thread(self, message: str, thread_id: str) -> str:
        """Send ``message`` to the thread, wait for the assistant, and return its reply."""

        self.logger.debug("Prompting thread %s: %s", thread_id, message)
        self.message_thread(message, thread_id)
        run_id = self.run_assistant_on_thread(thread_id)

        outcome = self.confirm_run_completion(thread_id, run_id)
        if outcome.state is PollState.TRANSPORT_FAILURE:
            raise TransportFailure(outcome.detail or "run status query failed")
        if not outcome.completed:
            raise PollTimeout(self.poller.max_duration, self.poller.interval, outcome.elapsed)

        self.logger.info("Run %s completed after %d checks.", run_id, outcome.attempts)
        return self.get_thread_response(thread_id)

    def get_thread_response(self, thread_id: str) -> str:
        """Return the most recent message on the thread as display text."""

        response = self._send("get thread response", "GET", self._thread_url(thread_id, "messages"))
        # messages are listed newest first inside the {"data": [...]} envelope
        latest = extract_nth_object(1, 1, response.body).unwrap(response.body)
        value = extract_field("value", latest).unwrap(response.body)
        return normalize_message_text(value)
