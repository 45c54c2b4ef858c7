"""Prefixed identifiers for requests and log correlation."""

from uuid import uuid4


def new_id(prefix: str) -> str:
    """Return ``<prefix>_<32 hex chars>``, e.g. ``req_3f2a...``."""
    return f"{prefix}_{uuid4().hex}"
