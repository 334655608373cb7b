# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the Adaptive Path Engine.

This package contains the core business logic and shared clients:
- config: Application configuration and settings
- adaptive: Cognitive profile update and decision policy
- execution: Remote code runner client
- intelligence: LLM client and content generation
"""
