"""
Session: the unit of work coordinating entities, journal and store.

A session owns

- the entity cache (bounded LRU keyed by (type name, IRI))
- the dirty set (entities with uncommitted mutations, pinned in the cache)
- the mutation journal
- the registry of entity types used to resolve object references
- the fresh-identifier generator and violation listeners

Lifecycle: open -> mutate* -> commit -> open. commit() performs exactly one
round trip to the store. There is no internal locking: one logical writer
drives a mutate/commit cycle at a time, and multi-threaded callers must
serialize whole cycles with their own lock.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sparqlmap.runtime.cache import DEFAULT_CACHE_SIZE, EntityCache
from sparqlmap.runtime.changes import ChangeNode
from sparqlmap.runtime.identifiers import FreshIdGenerator, UUIDSuffixGenerator
from sparqlmap.runtime.journal import Journal, JournalState
from sparqlmap.runtime.violations import ConstraintViolation, ViolationListener, ViolationRegistry

if TYPE_CHECKING:
    from sparqlmap.config.settings import AppConfig
    from sparqlmap.runtime.entity import EntityType, SemanticEntity
    from sparqlmap.storage.graph_store import GraphStore

LOG = logging.getLogger("runtime.session")


class Session:
    """Unit of work over one graph store."""

    def __init__(
        self,
        store: "GraphStore",
        id_generator: FreshIdGenerator | None = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self.store = store
        self.journal = Journal()
        self.cache: EntityCache[tuple[str, str], "SemanticEntity"] = EntityCache(cache_size)
        self.violations = ViolationRegistry()
        self._id_generator = id_generator or UUIDSuffixGenerator()
        self._types: dict[str, "EntityType"] = {}
        self._dirty: set["SemanticEntity"] = set()
        self._redirtied: set["SemanticEntity"] = set()

    @classmethod
    def from_config(cls, config: "AppConfig") -> "Session":
        from sparqlmap.storage.graph_store import build_graph_store

        return cls(build_graph_store(config.store), cache_size=config.runtime.cache_size)

    # ── Entity types ──────────────────────────────────────────────────

    def register(self, entity_type: "EntityType") -> "EntityType":
        self._types[entity_type.name] = entity_type
        return entity_type

    def entity_type(self, name: str) -> "EntityType":
        return self._types[name]

    def resolve(self, type_name: str, uri: str) -> "SemanticEntity | None":
        """Load ``uri`` as the registered type ``type_name``; None if unregistered or absent."""
        entity_type = self._types.get(type_name)
        if entity_type is None:
            return None
        return entity_type.load_from_uri(self, uri)

    # ── Cache ─────────────────────────────────────────────────────────

    def cached(self, entity_type: "EntityType", uri: str) -> "SemanticEntity | None":
        return self.cache.get((entity_type.name, uri))

    def cache_entity(self, entity: "SemanticEntity") -> None:
        self.cache.put((entity.entity_type.name, entity.uri), entity)

    # ── Mutation tracking ─────────────────────────────────────────────

    def record(self, entity: "SemanticEntity", node: ChangeNode) -> None:
        """Queue ``node`` and mark its entity dirty. Called by every mutator."""
        self.journal.append(node)
        self.mark_dirty(entity)

    def mark_dirty(self, entity: "SemanticEntity") -> None:
        key = (entity.entity_type.name, entity.uri)
        if self.cache.get(key) is entity:
            self.cache.pin(key)
        else:
            # an evicted entity may have been reloaded as a second object
            self.cache.put(key, entity, pin=True)
        self._dirty.add(entity)
        if self.journal.state is JournalState.COMMITTING:
            self._redirtied.add(entity)

    def mark_committed(self, entity: "SemanticEntity") -> None:
        self._dirty.discard(entity)
        key = (entity.entity_type.name, entity.uri)
        if entity.deleted:
            self.cache.discard(key)
        else:
            self.cache.unpin(key)
        entity.mark_committed()

    def is_dirty(self, entity: "SemanticEntity") -> bool:
        return entity in self._dirty

    @property
    def dirty(self) -> frozenset["SemanticEntity"]:
        return frozenset(self._dirty)

    # ── Commit / rollback ─────────────────────────────────────────────

    def commit(self) -> int:
        """
        Flush the journal to the store as one update request.

        Returns:
            Number of change nodes committed

        Raises:
            CommitError: The store rejected the update; journal and dirty set
                are unchanged and commit() may be retried.
        """
        if not self.journal:
            return 0

        committing = {entity: entity.snapshot() for entity in self._dirty}
        self._redirtied = set()
        flushed = self.journal.flush(self.store)

        for entity, state in committing.items():
            if entity in self._redirtied:
                # the store holds the state flushed above, not the newer values
                entity.mark_committed(state)
            else:
                self.mark_committed(entity)
        self._redirtied = set()

        LOG.info("Commit done: %d change(s), %d entities clean", len(flushed), len(committing))
        return len(flushed)

    def rollback(self) -> None:
        """Discard queued changes and restore dirty entities to their committed state."""
        discarded = len(self.journal)
        self.journal.clear()
        for entity in list(self._dirty):
            entity.revert()
            self._dirty.discard(entity)
            key = (entity.entity_type.name, entity.uri)
            if entity.deleted:
                self.cache.discard(key)
            else:
                self.cache.unpin(key)
        LOG.info("Rolled back %d change(s)", discarded)

    # ── Identifiers and violations ────────────────────────────────────

    def fresh_suffix_for(self, tag: str) -> str:
        return self._id_generator.fresh_suffix_for(tag)

    def add_violation_listener(self, listener: ViolationListener) -> None:
        self.violations.add(listener)

    def remove_violation_listener(self, listener: ViolationListener) -> None:
        self.violations.remove(listener)

    def violation(self, violation: ConstraintViolation) -> None:
        self.violations.notify(violation)

    # ── Resources ─────────────────────────────────────────────────────

    def close(self) -> None:
        if self.journal:
            LOG.warning("Closing session with %d uncommitted change(s)", len(self.journal))
        self.store.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
