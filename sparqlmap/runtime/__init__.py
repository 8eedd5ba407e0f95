"""
Object runtime: entities, mutation journal and the session that commits them.

Submodules:
    - changes: change node kinds
    - journal: ordered mutation log
    - cache: LRU entity cache with pinning
    - entity: descriptor tables, SemanticEntity and EntityType
    - session: unit of work (commit / rollback)
    - identifiers: fresh IRI suffixes
    - violations: constraint violation listeners
"""

from .cache import EntityCache
from .changes import (
    ChangeKind,
    ChangeNode,
    CreateEntity,
    DeleteEntity,
    PropertyAdd,
    PropertyChange,
    PropertyRemove,
    RedirectDelete,
)
from .entity import EntityType, Multiplicity, PropertyDescriptor, PropertyKind, SemanticEntity
from .identifiers import FreshIdGenerator, UUIDSuffixGenerator
from .journal import Journal, JournalState
from .session import Session
from .violations import ConstraintViolation, ViolationKind, ViolationListener, ViolationRegistry

__all__ = [
    "ChangeKind",
    "ChangeNode",
    "ConstraintViolation",
    "CreateEntity",
    "DeleteEntity",
    "EntityCache",
    "EntityType",
    "FreshIdGenerator",
    "Journal",
    "JournalState",
    "Multiplicity",
    "PropertyAdd",
    "PropertyChange",
    "PropertyDescriptor",
    "PropertyKind",
    "PropertyRemove",
    "RedirectDelete",
    "SemanticEntity",
    "Session",
    "UUIDSuffixGenerator",
    "ViolationKind",
    "ViolationListener",
    "ViolationRegistry",
]
