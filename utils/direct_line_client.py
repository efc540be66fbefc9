from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from config import ENABLE_DEBUG
from utils.errors import DirectLineError, ErrorType, detect_error, error_message

_logger = logging.getLogger(__name__)
if ENABLE_DEBUG and not logging.getLogger().handlers:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s | %(message)s")

# ──────────────────────────────────────────────────────────────
#  Constants
# ──────────────────────────────────────────────────────────────

_HEADERS_BASE: Dict[str, str] = {
    "Accept": "application/json",
}

_SNIPPET_CHARS: int = 300


# ──────────────────────────────────────────────────────────────
#  Internal helpers
# ──────────────────────────────────────────────────────────────


def _snippet(text: str) -> str:
    return text[:_SNIPPET_CHARS].replace("\n", " ")


# ──────────────────────────────────────────────────────────────
#  Public client
# ──────────────────────────────────────────────────────────────


class DirectLineClient:
    """
    Thin wrapper around the Direct Line REST endpoints.

    Every method returns the decoded JSON object on success and raises
    :class:`DirectLineError` otherwise, so callers only ever deal with one
    exception type regardless of whether the network, the body or the bot
    service itself failed.
    """

    def __init__(
            self,
            base_url: str,
            secret: str,
            timeout: float = 15.0,
            session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(_HEADERS_BASE)
        self._session.headers["Authorization"] = f"Bearer {secret}"

    # —— low-level ——————————————————————————————————————————

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "conversations", *parts])

    @staticmethod
    def _headers(user_id: str, token: str) -> Dict[str, str]:
        return {"Cookie": f"UserId={user_id}", "token": token or ""}

    def _request(
            self,
            method: str,
            url: str,
            user_id: str,
            token: str,
            **kwargs: Any,
    ) -> Dict[str, Any]:
        try:
            resp = self._session.request(
                method,
                url,
                headers=self._headers(user_id, token),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise DirectLineError(ErrorType.TRANSPORT, str(exc)) from exc

        if ENABLE_DEBUG:
            _logger.debug(
                "%s %s – status %s – %.1f kB",
                method,
                url,
                resp.status_code,
                len(resp.content) / 1024.0,
            )

        if not resp.content or not resp.text.strip():
            raise DirectLineError(
                ErrorType.PAYLOAD, "empty response body", status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as exc:
            if ENABLE_DEBUG:
                _logger.debug("Non-JSON body from %s: %s", url, _snippet(resp.text))
            raise DirectLineError(
                ErrorType.PAYLOAD,
                f"couldn't parse JSON: {_snippet(resp.text)}",
                status_code=resp.status_code,
            ) from exc

        error_type = detect_error(data, resp.status_code)
        if error_type is ErrorType.PAYLOAD:
            raise DirectLineError(
                error_type,
                f"expected a JSON object, got {type(data).__name__}",
                status_code=resp.status_code,
            )
        if error_type is not ErrorType.NONE:
            raise DirectLineError(
                error_type,
                error_message(data),
                status_code=resp.status_code,
                details=data.get("error"),
            )

        if ENABLE_DEBUG:
            _logger.debug("JSON from %s:\n%s", url, json.dumps(data, indent=2)[:1_000])

        return data

    # —— endpoints ——————————————————————————————————————————

    def create_conversation(self, user_id: str = "", token: str = "") -> Dict[str, Any]:
        """
        Start a new conversation.

        The returned object carries ``conversationId``, ``token`` and
        ``expires_in``; a body without ``conversationId`` or ``token`` is a
        payload error.
        """
        data = self._request("POST", self._url(), user_id, token)
        if not data.get("conversationId") or not data.get("token"):
            raise DirectLineError(
                ErrorType.PAYLOAD, "handshake response lacks conversationId or token", details=data
            )
        return data

    def post_activity(
            self,
            conversation_id: str,
            activity: Dict[str, Any],
            user_id: str = "",
            token: str = "",
    ) -> Dict[str, Any]:
        """Submit *activity* to *conversation_id*; the response body is otherwise unused."""
        return self._request(
            "POST", self._url(conversation_id, "activities"), user_id, token, json=activity
        )

    def get_activities(
            self,
            conversation_id: str,
            watermark: Optional[str] = None,
            user_id: str = "",
            token: str = "",
    ) -> Dict[str, Any]:
        """
        Fetch activities newer than *watermark* (everything when ``None``).

        ``watermark`` is passed through verbatim; the service owns its format.
        """
        data = self._request(
            "GET",
            self._url(conversation_id, "activities"),
            user_id,
            token,
            params={"watermark": watermark if watermark is not None else ""},
        )
        if not isinstance(data.get("activities", []), list):
            raise DirectLineError(ErrorType.PAYLOAD, "'activities' is not a list", details=data)
        data.setdefault("activities", [])
        return data

    def close(self) -> None:
        self._session.close()
