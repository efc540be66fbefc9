"""
Client side of a single Direct Line conversation.

A :class:`ConversationSession` creates the conversation, polls it for new
activities on a repeating timer and posts the local user's messages. Nothing
it does raises into the caller: outcomes arrive as events and failures end up
in the log.

Events:

* ``connected()`` – a conversation was created by :meth:`~ConversationSession.create`
* ``started()`` – polling started (:meth:`~ConversationSession.start_polling`, create)
* ``stopped()`` – polling stopped (explicitly, on restart, or after going idle)
* ``message(text, activity)`` – the bot said something
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from config import ENABLE_DEBUG
from utils.direct_line_client import DirectLineClient
from utils.errors import DirectLineError
from .events import EventEmitter
from .models import Activity, SessionConfig, outgoing_message
from .timer import RepeatingTimer

_logger = logging.getLogger(__name__)
if ENABLE_DEBUG and not logging.getLogger().handlers:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s | %(message)s")

EVENT_NAMES: tuple[str, ...] = ("connected", "started", "stopped", "message")

_MAX_BACKOFF_SECONDS: float = 30.0


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        _logger.error("Background request crashed", exc_info=exc)


class ConversationSession(EventEmitter):
    """
    Owns one remote conversation and every HTTP call made on its behalf.

    Either call :meth:`create` to open a new conversation, or pass an existing
    *conversation_id* and *token* to resume one (polling starts right away).
    :meth:`stop_polling` pauses fetching while still allowing
    :meth:`send_message`; :meth:`start_polling` resumes it.

    Conversation expiry is not handled: once the service drops the
    conversation, polls and sends simply keep failing in the log.
    """

    # —— life‑cycle ————————————————————————————————————————————

    def __init__(
            self,
            config: Optional[SessionConfig] = None,
            conversation_id: Optional[str] = None,
            token: Optional[str] = None,
            client: Optional[DirectLineClient] = None,
            executor: Optional[Executor] = None,
    ) -> None:
        super().__init__(EVENT_NAMES)
        self.cfg = config or SessionConfig()
        self.user_id: str = self.cfg.user_id
        self.user_name: str = self.cfg.user_name

        self._client = client or DirectLineClient(
            self.cfg.base_url, self.cfg.secret, timeout=self.cfg.request_timeout
        )
        # One worker keeps sends in submission order
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="directline")

        self._state_lock = threading.RLock()
        self._conversation_id: Optional[str] = conversation_id
        self._token: str = token or ""
        self._expires_in: float = 0
        self._token_expires_at: Optional[float] = None
        self._watermark: Optional[str] = None
        self._timer: Optional[RepeatingTimer] = None
        self._last_activity: float = time.monotonic()
        self._has_sent_message = False

        if conversation_id:
            if self._token:
                self.start_polling()
            else:
                _logger.warning(
                    "Conversation %s was given without a token; call create() before polling",
                    conversation_id,
                )

    # —— state accessors ——————————————————————————————————————

    @property
    def conversation_id(self) -> Optional[str]:
        return self._conversation_id

    @property
    def token(self) -> str:
        return self._token

    @property
    def expires_in(self) -> float:
        return self._expires_in

    @property
    def watermark(self) -> Optional[str]:
        return self._watermark

    @property
    def is_connected(self) -> bool:
        with self._state_lock:
            return bool(self._conversation_id and self._token)

    @property
    def is_polling(self) -> bool:
        return self._timer is not None

    @property
    def has_sent_message(self) -> bool:
        return self._has_sent_message

    @property
    def token_expired(self) -> bool:
        """Advisory only; nothing refreshes or rejects an expired token."""
        expires_at = self._token_expires_at
        return expires_at is not None and time.monotonic() >= expires_at

    # —— public API —————————————————————————————————————————

    def create(self) -> None:
        """
        Ask the service for a new conversation without blocking the caller.

        On success the ids are stored, the watermark is reset, ``connected``
        fires and polling (re)starts. Failures are retried up to
        ``create_retries`` times and then only logged.
        """
        self._submit(self._create)

    def send_message(self, text: str) -> None:
        """
        Post *text* as the local user. Fire-and-forget: failures are logged.

        The first call also opens the gate that lets polled bot messages
        through (see :meth:`_poll`).
        """
        with self._state_lock:
            conversation_id, token = self._conversation_id, self._token
        if not (conversation_id and token):
            _logger.warning("Dropping message, no conversation yet: %r", text)
            return

        self._has_sent_message = True
        self.start_polling()
        activity = outgoing_message(text, self.user_id, self.user_name)
        self._submit(self._send, conversation_id, token, activity)

    def stop_polling(self) -> None:
        """Stop fetching activities; emits ``stopped`` only if polling was active."""
        with self._state_lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        _logger.debug("Polling stopped")
        self.emit("stopped")

    def start_polling(self) -> None:
        """(Re)start the polling timer; any running timer is stopped first."""
        self.stop_polling()
        timer = RepeatingTimer(self.cfg.poll_interval, self._poll, name="directline-poll")
        with self._state_lock:
            previous, self._timer = self._timer, timer
            self._last_activity = time.monotonic()
        if previous is not None:
            previous.cancel()
        timer.start()
        _logger.debug("Polling started every %.1fs", self.cfg.poll_interval)
        self.emit("started")

    def when_connected(self, callback: Callable[[], None], delay: Optional[float] = None) -> None:
        """
        Run *callback* once the conversation is connected.

        Runs immediately when already connected. Otherwise it runs once, on the
        next ``connected`` event, after *delay* seconds if given.
        """

        def _fire() -> None:
            if delay:
                timer = threading.Timer(delay, callback)
                timer.daemon = True
                timer.start()
            else:
                callback()

        with self._state_lock:
            connected = bool(self._conversation_id and self._token)
            if not connected:
                self.once("connected", _fire)
        if connected:
            callback()

    # —— internal helpers ——————————————————————————————————————

    def _submit(self, fn: Callable[..., None], *args: Any) -> None:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(_log_failure)

    def _backoff(self, attempt: int) -> None:
        if self.cfg.retry_backoff > 0:
            time.sleep(min(self.cfg.retry_backoff * 2 ** (attempt - 1), _MAX_BACKOFF_SECONDS))

    def _create(self) -> None:
        attempts = max(1, self.cfg.create_retries)
        for attempt in range(1, attempts + 1):
            try:
                data = self._client.create_conversation(self.user_id, self._token)
            except DirectLineError as exc:
                _logger.warning("Create attempt %d/%d failed: %s", attempt, attempts, exc)
                if attempt < attempts:
                    self._backoff(attempt)
                continue
            self._on_created(data)
            return
        _logger.error("Giving up creating a conversation after %d attempts", attempts)

    def _on_created(self, data: Dict[str, Any]) -> None:
        try:
            expires_in = float(data.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0
        with self._state_lock:
            self._conversation_id = data["conversationId"]
            self._token = data["token"]
            self._expires_in = expires_in
            self._token_expires_at = time.monotonic() + expires_in if expires_in else None
            self._watermark = None
        _logger.info("Connected to conversation %s", self._conversation_id)
        self.emit("connected")
        self.start_polling()

    def _send(self, conversation_id: str, token: str, activity: Dict[str, Any]) -> None:
        attempts = max(1, self.cfg.send_retries)
        for attempt in range(1, attempts + 1):
            try:
                self._client.post_activity(conversation_id, activity, self.user_id, token)
            except DirectLineError as exc:
                _logger.warning("Send attempt %d/%d failed: %s", attempt, attempts, exc)
                continue
            _logger.debug("Message delivered to %s", conversation_id)
            return
        _logger.error("Giving up sending message after %d attempts", attempts)

    def _poll(self) -> None:
        """
        Fetch and dispatch activities newer than the current watermark.

        Bot messages are only emitted after the local user has sent something,
        which hides history replayed on reconnect but also drops any greeting
        the bot sends first.
        """
        with self._state_lock:
            conversation_id, token, watermark = self._conversation_id, self._token, self._watermark
            idle = time.monotonic() - self._last_activity

        if not (conversation_id and token):
            _logger.debug("Not connected yet, skipping poll")
            return

        if self.cfg.idle_timeout and idle > self.cfg.idle_timeout:
            _logger.info("No activity for %.0fs, pausing polling", idle)
            self.stop_polling()
            return

        data = None
        attempts = max(1, self.cfg.poll_retries)
        for attempt in range(1, attempts + 1):
            try:
                data = self._client.get_activities(conversation_id, watermark, self.user_id, token)
                break
            except DirectLineError as exc:
                _logger.warning("Poll attempt %d/%d failed: %s", attempt, attempts, exc)
        if data is None:
            return

        with self._state_lock:
            # A slower poll or a new conversation got here first
            if self._conversation_id != conversation_id or self._watermark != watermark:
                _logger.debug("Discarding stale poll response for watermark %r", watermark)
                return
            if data.get("watermark") is not None:
                self._watermark = data["watermark"]
            activities = [Activity.from_dict(a) for a in data["activities"]]
            if activities:
                self._last_activity = time.monotonic()

        for activity in activities:
            if not activity.is_message:
                _logger.warning("Can't handle activity type %r (id=%s)", activity.type, activity.id)
                continue
            if activity.from_.id == self.user_id:
                continue
            if not self._has_sent_message:
                _logger.debug("Ignoring message %s received before the first send", activity.id)
                continue
            self.emit("message", activity.text, activity)
