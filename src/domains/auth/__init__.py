# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain: JWT access token validation."""

from src.domains.auth.jwt import JWTManager

__all__ = ["JWTManager"]
