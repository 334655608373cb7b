# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Job context middleware.

Binds the message id, actor name and user id of the job being processed to
the structured logging context, so every log entry written while handling a
job can be traced back to it. Worker processes also configure logging on
boot.
"""

from typing import Any

import dramatiq
from dramatiq import Message, Middleware

from src.utils.logging import bind_context, clear_context, setup_logging


class JobContextMiddleware(Middleware):
    """Propagates job identity into the logging context."""

    USER_KEY = "user_id"

    def after_process_boot(self, broker: dramatiq.Broker) -> None:
        """Configure structured logging in a freshly booted worker process."""
        from src.core.config import get_settings

        setup_logging(get_settings())

    def before_process_message(
        self,
        broker: dramatiq.Broker,
        message: Message,
    ) -> None:
        """Bind job identity before the actor runs."""
        clear_context()
        context: dict[str, Any] = {
            "message_id": message.message_id,
            "actor": message.actor_name,
            "queue": message.queue_name,
            "attempt": message.options.get("retries", 0) + 1,
        }
        user_id = message.kwargs.get(self.USER_KEY)
        if user_id is not None:
            context[self.USER_KEY] = str(user_id)
        bind_context(**context)

    def after_process_message(
        self,
        broker: dramatiq.Broker,
        message: Message,
        *,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        """Drop job identity once the actor has returned or raised."""
        clear_context()

    def after_skip_message(
        self,
        broker: dramatiq.Broker,
        message: Message,
    ) -> None:
        """Drop job identity for skipped messages."""
        clear_context()
