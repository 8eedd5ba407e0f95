"""
Fresh identifier generation.

The runtime only relies on the contract ``fresh_suffix_for(tag) -> str``;
the string scheme is pluggable. Suffixes must not collide across concurrent
callers within one process.
"""

from __future__ import annotations

import uuid
from typing import Protocol


class FreshIdGenerator(Protocol):
    def fresh_suffix_for(self, tag: str) -> str:
        """Return a new suffix for an IRI of kind ``tag``."""
        ...


class UUIDSuffixGenerator:
    """Random UUID4 suffixes, e.g. ``-3f2b9c0e4d1a4b7e9a6c2d8f1e0b5a7c``."""

    def fresh_suffix_for(self, tag: str) -> str:
        return "-" + uuid.uuid4().hex
