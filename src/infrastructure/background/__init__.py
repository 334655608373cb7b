# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task infrastructure built on Dramatiq.

Quick Start:
    from src.infrastructure.background import setup_dramatiq
    setup_dramatiq()

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 2 --threads 4
"""

from src.infrastructure.background.broker import (
    BrokerManager,
    Priority,
    Queues,
    get_broker,
    get_broker_manager,
    setup_dramatiq,
    shutdown_dramatiq,
)

__all__ = [
    "BrokerManager",
    "Priority",
    "Queues",
    "get_broker",
    "get_broker_manager",
    "setup_dramatiq",
    "shutdown_dramatiq",
]
