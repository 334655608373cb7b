# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer.

- database: PostgreSQL connections, ORM models and migrations
- background: Dramatiq broker, middleware and actors
"""
