"""Utilities for generating identifiers used across the service."""

from __future__ import annotations

import uuid


def new_analysis_id() -> str:
    return f"an_{uuid.uuid4().hex}"
