# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intelligence layer: LLM access and adaptive content generation.

- llm: LiteLLM based completion client
- generation: Bridging problems and remedial fragments
"""
