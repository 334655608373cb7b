# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Failure logging for background jobs.

Every failed attempt is logged as a warning. When a message is finally
rejected (retries exhausted, or an exception the actor declared in
``throws``) the broker moves it to its dead-letter queue and an error entry
is written with the job's arguments. Nothing is reported to the student.
"""

from typing import Any

import dramatiq
from dramatiq import Message, Middleware

from src.utils.logging import get_logger

logger = get_logger(__name__)


class DeadLetterMiddleware(Middleware):
    """Logs failed attempts and dead-lettered jobs."""

    def after_process_message(
        self,
        broker: dramatiq.Broker,
        message: Message,
        *,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log a failed attempt."""
        if exception is None:
            return
        logger.warning(
            "job_attempt_failed",
            message_id=message.message_id,
            actor=message.actor_name,
            retries=message.options.get("retries", 0),
            error=f"{type(exception).__name__}: {exception}",
        )

    def after_nack(self, broker: dramatiq.Broker, message: Message) -> None:
        """Log a job that was moved to the dead-letter queue."""
        logger.error(
            "job_dead_lettered",
            message_id=message.message_id,
            actor=message.actor_name,
            queue=message.queue_name,
            job_kwargs=message.kwargs,
            retries=message.options.get("retries", 0),
            traceback=message.options.get("traceback"),
        )
