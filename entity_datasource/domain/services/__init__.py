"""
Domain services package.

Services orchestrate domain logic that doesn't naturally belong to a single
entity. They coordinate between entities and ports to implement use cases.

Following Hexagonal Architecture principles, services depend only on domain
entities, value objects, and port protocols (never on concrete implementations).
"""

from .bundle_policy import resolve_bundles, is_bundle_in_scope
from .scope_diff import diff_scope, normalize_to_mode
from .item_enumerator import ItemEnumerator
from .dependency_walker import DependencyWalker, split_property_paths
from .datasource import ContentEntityDatasource, datasource_id_for

__all__ = [
    "resolve_bundles",
    "is_bundle_in_scope",
    "diff_scope",
    "normalize_to_mode",
    "ItemEnumerator",
    "DependencyWalker",
    "split_property_paths",
    "ContentEntityDatasource",
    "datasource_id_for",
]
