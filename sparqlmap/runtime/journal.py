"""
Mutation journal.

An append-ordered log of change nodes awaiting commit. Order is part of
correctness: later nodes may rely on the effects of earlier ones (a
redirect must run before the delete that follows it), so nodes are never
reordered or coalesced.

The journal is a two-state machine:

    OPEN  --flush()-->  COMMITTING  --success-->  OPEN (flushed prefix dropped)
                                    --failure-->  OPEN (untouched, retryable)

Nodes appended while COMMITTING belong to the next commit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING

from sparqlmap.errors import CommitError, StoreError
from sparqlmap.runtime.changes import ChangeNode

if TYPE_CHECKING:
    from sparqlmap.storage.graph_store import GraphStore

LOG = logging.getLogger("runtime.journal")

UPDATE_SEPARATOR = " ;\n"


class JournalState(str, Enum):
    OPEN = "open"
    COMMITTING = "committing"


def combine(nodes: list[ChangeNode]) -> str:
    """Join the updates of ``nodes`` into one request, preserving order."""
    return UPDATE_SEPARATOR.join(node.as_update() for node in nodes)


class Journal:
    """Ordered log of pending mutations."""

    def __init__(self) -> None:
        self._nodes: list[ChangeNode] = []
        self._state = JournalState.OPEN

    @property
    def state(self) -> JournalState:
        return self._state

    @property
    def nodes(self) -> list[ChangeNode]:
        """Queued nodes in append order."""
        return list(self._nodes)

    def append(self, node: ChangeNode) -> None:
        self._nodes.append(node)
        LOG.debug("Queued %s for <%s>", node.kind.value, node.subject)

    def clear(self) -> None:
        self._nodes.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ChangeNode]:
        return iter(list(self._nodes))

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def as_update(self) -> str:
        """The combined update the next flush would submit."""
        return combine(self._nodes)

    def flush(self, store: "GraphStore") -> list[ChangeNode]:
        """
        Submit every queued node as a single update request.

        On success the submitted nodes are dropped and returned; nodes
        appended during the round trip stay queued.

        Raises:
            CommitError: The store rejected the update. The journal is left
                exactly as it was, so the identical update can be retried.
        """
        if self._state is JournalState.COMMITTING:
            raise CommitError("A commit is already in progress")
        if not self._nodes:
            return []

        pending = list(self._nodes)
        update = combine(pending)
        self._state = JournalState.COMMITTING
        try:
            store.execute_update(update)
        except StoreError as exc:
            LOG.warning("Commit of %d change(s) failed: %s", len(pending), exc)
            raise CommitError(f"Commit of {len(pending)} change(s) failed: {exc}", update=update) from exc
        else:
            del self._nodes[: len(pending)]
        finally:
            self._state = JournalState.OPEN

        LOG.info("Committed %d change(s)", len(pending))
        return pending
