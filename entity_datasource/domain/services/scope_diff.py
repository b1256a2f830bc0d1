"""
Scope diffing between two configurations of the same datasource.

When a configuration is saved, the ledger must start tracking items of
bundles that entered the scope and stop tracking items of bundles that
left it. This module computes those two bundle sets.

A change of mode flips the meaning of the old selection: "page" selected
under INCLUDE_ALL_EXCEPT means "everything but page", which under
EXCLUDE_ALL_EXCEPT is spelled "everything else selected". The old
configuration is therefore re-expressed under the new mode before the
two resolved scopes are compared.
"""

import logging
from typing import Iterable

from entity_datasource.domain.services.bundle_policy import resolve_bundles
from entity_datasource.domain.value_objects import ScopeConfiguration, ScopeDiff

logger = logging.getLogger(__name__)


def normalize_to_mode(
    old_config: ScopeConfiguration,
    new_config: ScopeConfiguration,
    all_bundles: Iterable[str],
) -> ScopeConfiguration:
    """
    Re-express `old_config` as if it had been recorded under the new mode.

    Membership is inverted against `all_bundles`, which keeps the resolved
    scope of the old configuration unchanged.
    """
    if old_config.mode is new_config.mode:
        return old_config
    logger.debug(
        f"Scope mode changed from {old_config.mode.value} to "
        f"{new_config.mode.value}, inverting old selection"
    )
    return old_config.with_mode(new_config.mode, all_bundles)


def diff_scope(
    old_config: ScopeConfiguration,
    new_config: ScopeConfiguration,
    all_bundles: Iterable[str],
    has_bundles: bool = True,
) -> ScopeDiff:
    """
    Compute the bundles that entered and left the scope.

    Args:
        old_config: Configuration before the change
        new_config: Configuration after the change
        all_bundles: Bundles currently available for the record type
        has_bundles: False for record types without a bundle concept

    Returns:
        ScopeDiff whose `start` and `stop` are disjoint subsets of
        `all_bundles`, such that
        resolve(new) == (resolve(old) | start) - stop
    """
    if not has_bundles:
        return ScopeDiff()

    all_bundles = frozenset(all_bundles)
    normalized_old = normalize_to_mode(old_config, new_config, all_bundles)

    resolved_old = resolve_bundles(normalized_old, all_bundles)
    resolved_new = resolve_bundles(new_config, all_bundles)

    return ScopeDiff(
        start=resolved_new - resolved_old,
        stop=resolved_old - resolved_new,
    )
