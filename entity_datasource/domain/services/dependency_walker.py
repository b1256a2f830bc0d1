"""
Configuration dependencies of property paths.

An index that reads "image:entity:alt" from node items depends on the
configuration of the node "image" field and on the configuration of the
media "alt" field. This module walks such paths, following reference
fields into their target record types.

Path shapes:
- "title": a field directly on the record type
- "image:entity:alt": one hop through the reference field "image"; the
  remainder after the first ":entity:" is resolved against the target
  record type, so "a:entity:b:entity:c" recurses twice
- anything else containing ":" (e.g. "body:value") is not resolved and is
  reported with a warning
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from entity_datasource.domain.exceptions import UnresolvableDependency
from entity_datasource.domain.ports import RecordStore

logger = logging.getLogger(__name__)

NESTED_SEPARATOR = ":entity:"
DEFAULT_MAX_DEPTH = 8


def split_property_paths(
    property_paths: Iterable[str],
) -> Tuple[Set[str], Dict[str, List[str]], List[str]]:
    """
    Split property paths into direct, nested and unsupported paths.

    Returns:
        Tuple of (direct field names, nested remainders keyed by the
        reference field name, unsupported paths)
    """
    direct: Set[str] = set()
    nested: Dict[str, List[str]] = {}
    unsupported: List[str] = []

    for path in property_paths:
        if NESTED_SEPARATOR in path:
            field_name, remainder = path.split(NESTED_SEPARATOR, 1)
            if field_name and remainder:
                nested.setdefault(field_name, [])
                if remainder not in nested[field_name]:
                    nested[field_name].append(remainder)
            else:
                unsupported.append(path)
        elif ":" not in path:
            direct.add(path)
        else:
            unsupported.append(path)

    return direct, nested, unsupported


class DependencyWalker:
    """
    Resolves the configuration objects a set of property paths relies on.

    Only configurable fields contribute dependencies; base fields are part
    of the record type itself. Recursion into referenced record types is
    capped by `max_depth` and by a visited set, so self-referential types
    terminate.
    """

    def __init__(
        self,
        record_store: RecordStore,
        max_depth: int = DEFAULT_MAX_DEPTH,
        strict: bool = False,
    ) -> None:
        """
        Args:
            record_store: Store providing bundles and field definitions
            max_depth: Maximum number of reference hops to follow
            strict: Raise UnresolvableDependency for paths that match no
                field instead of skipping them
        """
        if max_depth < 0:
            raise ValueError(f"max_depth cannot be negative, got {max_depth}")
        self._record_store = record_store
        self._max_depth = max_depth
        self._strict = strict

    def resolve_dependencies(
        self, record_type: str, property_paths: Iterable[str]
    ) -> FrozenSet[str]:
        """
        Get the ids of configuration objects the paths depend on.

        Args:
            record_type: Record type the paths start from
            property_paths: Property paths on items of that type

        Returns:
            Deduplicated configuration object ids

        Raises:
            UnresolvableDependency: In strict mode, if a path matches no field
        """
        return frozenset(self._walk(record_type, list(property_paths), 0, set()))

    def _walk(
        self,
        record_type: str,
        property_paths: List[str],
        depth: int,
        visited: Set[Tuple[str, FrozenSet[str]]],
    ) -> Set[str]:
        key = (record_type, frozenset(property_paths))
        if key in visited:
            logger.debug(f"Skipping already visited paths on '{record_type}'")
            return set()
        visited.add(key)

        direct, nested, unsupported = split_property_paths(property_paths)
        for path in unsupported:
            # Only one "<field>:entity:<rest>" shape is understood.
            logger.warning(
                f"Cannot resolve dependencies of property path '{path}' on '{record_type}'"
            )

        dependencies: Set[str] = set()
        matched: Set[str] = set()

        for bundle in self._record_store.get_bundles(record_type):
            definitions = self._record_store.get_field_definitions(record_type, bundle)
            for field_name, definition in definitions.items():
                if field_name not in direct and field_name not in nested:
                    continue
                matched.add(field_name)
                if not definition.configurable:
                    continue

                dependencies.add(definition.config_dependency_name)

                if field_name not in nested:
                    continue
                if not definition.is_reference():
                    logger.warning(
                        f"Field '{record_type}.{field_name}' is not a reference field, "
                        f"ignoring nested paths {nested[field_name]}"
                    )
                    continue
                if depth >= self._max_depth:
                    logger.warning(
                        f"Maximum reference depth {self._max_depth} reached at "
                        f"'{record_type}.{field_name}'"
                    )
                    continue
                dependencies |= self._walk(
                    definition.target_type, nested[field_name], depth + 1, visited
                )

        for field_name in sorted((direct | set(nested)) - matched):
            if self._strict:
                raise UnresolvableDependency(record_type, field_name)
            logger.debug(f"No field '{field_name}' on record type '{record_type}'")

        return dependencies
