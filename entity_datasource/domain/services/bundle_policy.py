"""
Bundle policy resolution.

Turns a scope configuration into the concrete set of bundles that are
indexed, given the bundles that currently exist.
"""

from typing import FrozenSet, Iterable

from entity_datasource.domain.value_objects import ScopeConfiguration, ScopeMode


def resolve_bundles(
    config: ScopeConfiguration,
    all_bundles: Iterable[str],
    has_bundles: bool = True,
) -> FrozenSet[str]:
    """
    Compute the bundles a scope configuration puts in scope.

    Selected bundles that no longer exist are ignored, so the result is
    always a subset of `all_bundles`.

    Args:
        config: The scope configuration to resolve
        all_bundles: Bundles currently available for the record type
        has_bundles: False for record types without a bundle concept, in
            which case the configuration does not apply

    Returns:
        The in-scope bundles
    """
    all_bundles = frozenset(all_bundles)
    if not has_bundles:
        return all_bundles

    if config.mode is ScopeMode.INCLUDE_ALL_EXCEPT:
        return all_bundles - config.selected
    return all_bundles & config.selected


def is_bundle_in_scope(config: ScopeConfiguration, bundle: str) -> bool:
    """
    Check a single bundle against a configuration.

    Unlike resolve_bundles() this needs no list of available bundles: a
    bundle is in scope when its selection state disagrees with the mode's
    default (selected under EXCLUDE_ALL_EXCEPT, unselected under
    INCLUDE_ALL_EXCEPT).
    """
    include_by_default = config.mode is ScopeMode.INCLUDE_ALL_EXCEPT
    return include_by_default != config.is_selected(bundle)
