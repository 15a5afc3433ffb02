"""Sábana grade sheet engine.

Computes MINERD (Dominican Republic) and MENFP (Haiti) final grades from
teacher-entered period scores, caches assembled grade sheets and governs
their publication to students.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
