"""
Converters between domain entities/value objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from entity_datasource.domain import entities as domain
from entity_datasource.domain import value_objects as domain_vo
from entity_datasource.api.v1 import schemas as api


def domain_item_to_api(item: domain.Item) -> api.Item:
    """
    Convert a domain Item entity to an API Item model.

    Args:
        item: Domain Item entity

    Returns:
        API Item model
    """
    return api.Item(
        item_id=item.item_id,
        record_id=item.record.id,
        record_type=item.record.record_type,
        bundle=item.record.bundle,
        langcode=item.langcode,
        label=item.label,
        url=item.record.url,
        values=dict(item.values),
    )


def api_configuration_to_domain(
    configuration: api.ScopeConfiguration,
) -> domain_vo.ScopeConfiguration:
    return domain_vo.ScopeConfiguration.from_mapping(configuration.model_dump())


def domain_configuration_to_api(
    configuration: domain_vo.ScopeConfiguration,
) -> api.ScopeConfiguration:
    return api.ScopeConfiguration(**configuration.to_mapping())


def domain_diff_to_api(diff: domain_vo.ScopeDiff) -> api.ScopeDiff:
    return api.ScopeDiff(start=sorted(diff.start), stop=sorted(diff.stop))


def domain_dependencies_to_api(dependencies: domain_vo.DependencySet) -> api.DependencySet:
    return api.DependencySet(
        module=sorted(dependencies.module),
        config=sorted(dependencies.config),
    )
