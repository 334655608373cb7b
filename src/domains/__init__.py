# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

Domains:
    adaptive: Adaptive action persistence and delivery.
    auth: JWT validation.
    submission: Lesson submission grading and analysis enqueueing.
"""
