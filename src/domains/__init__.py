# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the grade sheet engine.

Domains:
    grading: Grade sheet computation, caching, grade entry and publication.
"""
