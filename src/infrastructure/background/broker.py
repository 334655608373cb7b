# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq broker configuration.

Jobs are persisted in Redis and acknowledged only after the actor returns,
so delivery is at least once. Dramatiq's Retries middleware re-enqueues
failed jobs with exponential backoff; after the last attempt the message is
moved to the queue's dead-letter set.

Set DRAMATIQ_TEST_MODE=true to use an in-memory StubBroker.

Example:
    from src.infrastructure.background.broker import setup_dramatiq, get_broker

    broker = setup_dramatiq()
"""

import logging
import os
from typing import Any

import dramatiq
import redis
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

from src.core.config import get_settings
from src.infrastructure.background.middleware import (
    DeadLetterMiddleware,
    JobContextMiddleware,
)

logger = logging.getLogger(__name__)


class Queues:
    """Queue name constants for task routing."""

    DEFAULT = "default"
    ADAPTIVE = "adaptive"


class Priority:
    """Task priority levels (lower number = higher priority)."""

    HIGH = 1
    NORMAL = 3
    LOW = 5


class BrokerManager:
    """Manages Dramatiq broker lifecycle.

    Attributes:
        _broker: The Dramatiq broker instance.
        _initialized: Whether the broker has been initialized.
    """

    def __init__(self) -> None:
        self._broker: dramatiq.Broker | None = None
        self._initialized = False

    @property
    def broker(self) -> dramatiq.Broker:
        """Get the configured broker.

        Raises:
            RuntimeError: If broker not initialized.
        """
        if self._broker is None:
            raise RuntimeError("Broker not initialized. Call setup() first.")
        return self._broker

    @property
    def is_initialized(self) -> bool:
        """Check if broker is initialized."""
        return self._initialized

    def setup(self) -> dramatiq.Broker:
        """Setup and configure the Dramatiq broker.

        Returns:
            Configured broker instance.
        """
        if self._initialized:
            return self._broker  # type: ignore

        logger.info("Setting up Dramatiq broker...")

        use_stub = os.getenv("DRAMATIQ_TEST_MODE", "false").lower() == "true"

        if use_stub:
            self._broker = StubBroker()
            self._setup_middleware()
            self._broker.emit_after("process_boot")
            logger.info("Using StubBroker for testing")
        else:
            redis_url = get_settings().redis.url
            self._broker = RedisBroker(url=redis_url)
            self._setup_middleware()
            logger.info("Redis broker initialized (url: %s)", redis_url.split("@")[-1])

        dramatiq.set_broker(self._broker)
        self._initialized = True

        return self._broker

    def _setup_middleware(self) -> None:
        """Add custom middleware after Dramatiq's defaults (Retries, TimeLimit, ...)."""
        if self._broker is None:
            return

        self._broker.add_middleware(JobContextMiddleware())
        self._broker.add_middleware(DeadLetterMiddleware())

        logger.debug("Middleware configured")

    def shutdown(self) -> None:
        """Shutdown the broker."""
        if self._broker is not None:
            self._broker.close()
            self._broker = None
            self._initialized = False
            logger.info("Broker shutdown complete")

    def get_queue_stats(self) -> dict[str, Any]:
        """Get queue depth and dead-letter counts.

        Returns:
            Queue statistics dictionary.
        """
        if not self._initialized or self._broker is None:
            return {"status": "not_initialized"}

        if isinstance(self._broker, RedisBroker):
            stats: dict[str, Any] = {"broker_type": "redis"}
            try:
                client = redis.from_url(get_settings().redis.url)

                queue_lengths = {}
                dead_letters = {}
                for queue in (Queues.DEFAULT, Queues.ADAPTIVE):
                    queue_lengths[queue] = client.llen(f"dramatiq:{queue}")
                    dead_letters[queue] = client.zcard(f"dramatiq:{queue}.XQ")

                stats["queues"] = queue_lengths
                stats["dead_letters"] = dead_letters
                stats["status"] = "healthy"
            except redis.RedisError as e:
                stats["status"] = "error"
                stats["error"] = str(e)

            return stats

        return {"broker_type": "stub", "status": "healthy"}


# Singleton instance
_broker_manager: BrokerManager | None = None


def get_broker_manager() -> BrokerManager:
    """Get the singleton broker manager."""
    global _broker_manager
    if _broker_manager is None:
        _broker_manager = BrokerManager()
    return _broker_manager


def setup_dramatiq() -> dramatiq.Broker:
    """Setup Dramatiq with configuration from settings.

    Returns:
        Configured broker.
    """
    return get_broker_manager().setup()


def get_broker() -> dramatiq.Broker:
    """Get the current Dramatiq broker.

    Raises:
        RuntimeError: If broker not initialized.
    """
    return get_broker_manager().broker


def shutdown_dramatiq() -> None:
    """Shutdown the Dramatiq broker."""
    global _broker_manager
    if _broker_manager is not None:
        _broker_manager.shutdown()
        _broker_manager = None
