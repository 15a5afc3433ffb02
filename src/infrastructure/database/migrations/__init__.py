# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Migrations cover only the tables this engine owns (grade rows and
in-app notifications). Institutions, levels, cycles, classes, users and
enrollments are managed by the school administration system.
"""
