"""
Domain layer - Core business logic and entities.

This layer contains the business entities, value objects, and defines
the ports (interfaces) that the infrastructure layer must implement.

It has NO dependencies on external frameworks, databases, or APIs.
"""

from .entities import Record, Item, IndexField
from .value_objects import (
    ScopeMode,
    ScopeConfiguration,
    ScopeDiff,
    FieldDefinition,
    DependencySet,
)
from .exceptions import MalformedIdentity, InvalidScopeConfiguration, UnresolvableDependency
from .identity import encode_item_id, decode_item_id

__all__ = [
    # Entities
    "Record",
    "Item",
    "IndexField",
    # Value Objects
    "ScopeMode",
    "ScopeConfiguration",
    "ScopeDiff",
    "FieldDefinition",
    "DependencySet",
    # Errors
    "MalformedIdentity",
    "InvalidScopeConfiguration",
    "UnresolvableDependency",
    # Identity
    "encode_item_id",
    "decode_item_id",
]
