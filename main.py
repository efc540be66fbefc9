from __future__ import annotations

import logging
import threading

from config import ENABLE_DEBUG, env
from directline import Activity, ConversationSession, SessionConfig

# ──────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────

_logger = logging.getLogger(__name__)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.DEBUG if ENABLE_DEBUG else logging.WARNING,
        format="%(levelname)s | %(message)s",
    )

_CONNECT_TIMEOUT: float = env("CONNECT_TIMEOUT", 30.0, cast=float)


# ──────────────────────────────────────────────────────────────
# Simple CLI for manual testing
# ──────────────────────────────────────────────────────────────


def _print_message(text: str | None, activity: Activity) -> None:
    print(f"\rBot : {text or ''}")
    for attachment in activity.attachments:
        title = getattr(attachment.content, "title", None) or attachment.name or attachment.content_type
        print(f"      [{title}]")
    print("You : ", end="", flush=True)


def main() -> None:
    cfg = SessionConfig()
    if not cfg.secret:
        raise SystemExit("DIRECT_LINE_SECRET environment variable must be set")

    conversation = ConversationSession(cfg)
    conversation.on("connected", lambda: _logger.info("CONNECTED"))
    conversation.on("started", lambda: _logger.info("STARTED"))
    conversation.on("stopped", lambda: _logger.info("STOPPED"))
    conversation.on("message", _print_message)

    ready = threading.Event()
    conversation.when_connected(ready.set)
    conversation.create()

    if not ready.wait(_CONNECT_TIMEOUT):
        raise SystemExit(f"No conversation after {_CONNECT_TIMEOUT:.0f}s, see log for details")

    print(f"🤖  Conversation {conversation.conversation_id} ready (Ctrl-D to quit)\n")
    try:
        while True:
            conversation.send_message(input("You : "))
    except (KeyboardInterrupt, EOFError):
        print("\n✋  Session ended.")
    finally:
        conversation.stop_polling()


if __name__ == "__main__":
    main()
