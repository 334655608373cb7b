"""Adaptive Path Engine.

Asynchronous learner modelling for an online coding-education platform:
cognitive profile updates, adaptive interventions and their delivery API.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
