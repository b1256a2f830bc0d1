"""
API endpoints for datasource operations.

This module defines the FastAPI routes for loading items, enumerating item
ids, reconfiguring the datasource scope and calculating dependencies. It
handles HTTP concerns and delegates to the datasource.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from entity_datasource.domain.exceptions import MalformedIdentity
from entity_datasource.domain.services import ContentEntityDatasource
from entity_datasource.api.v1 import schemas as api
from entity_datasource.api.v1.converters import (
    api_configuration_to_domain,
    domain_configuration_to_api,
    domain_dependencies_to_api,
    domain_diff_to_api,
    domain_item_to_api,
)
from entity_datasource.api.v1.dependencies import get_datasource

router = APIRouter()


@router.get("/datasource/items/{item_id}", response_model=api.Item)
def get_item(
    item_id: str,
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> api.Item:
    """
    Get a single item by its composite id.

    Raises:
        400: Malformed item id
        404: Record or translation not found
    """
    try:
        item = datasource.load(item_id)
    except MalformedIdentity as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Item '{item_id}' not found",
        )
    return domain_item_to_api(item)


@router.post("/datasource/items/load", response_model=api.LoadItemsResponse)
def load_items(
    request: api.LoadItemsRequest,
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> api.LoadItemsResponse:
    """
    Load several items at once.

    Ids that cannot be loaded are listed as missing (and reported to the
    tracking ledger as deleted) instead of failing the request.
    """
    try:
        items = datasource.load_multiple(request.item_ids)
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return api.LoadItemsResponse(
        items={item_id: domain_item_to_api(item) for item_id, item in items.items()},
        missing=[item_id for item_id in request.item_ids if item_id not in items],
    )


@router.get("/datasource/item-ids", response_model=api.ItemIdsResponse)
def list_item_ids(
    limit: int | None = Query(default=None, ge=0),
    offset: int = Query(default=0, ge=0),
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> api.ItemIdsResponse:
    """Enumerate the ids of all in-scope items."""
    return api.ItemIdsResponse(
        item_ids=datasource.enumerate_item_ids(limit=limit, offset=offset),
        limit=limit,
        offset=offset,
    )


@router.get("/datasource/configuration", response_model=api.ConfigurationResponse)
def get_configuration(
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> api.ConfigurationResponse:
    """Get the current scope configuration with a readable summary."""
    return api.ConfigurationResponse(
        configuration=domain_configuration_to_api(datasource.configuration),
        summary=datasource.get_scope_summary(),
        indexed_bundles=sorted(datasource.get_indexed_bundles()),
    )


@router.put("/datasource/configuration", response_model=api.ScopeDiff)
def put_configuration(
    request: api.ScopeConfiguration,
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> api.ScopeDiff:
    """
    Replace the scope configuration and reconcile the tracking ledger.

    Returns:
        The bundles whose items started and stopped being tracked
    """
    try:
        diff = datasource.reconfigure(api_configuration_to_domain(request))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return domain_diff_to_api(diff)


@router.get("/datasource/dependencies", response_model=api.DependencySet)
def get_dependencies(
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> api.DependencySet:
    """Get the configuration objects the index depends on through this datasource."""
    return domain_dependencies_to_api(datasource.calculate_dependencies())


@router.get("/health")
def health_check(
    datasource: ContentEntityDatasource = Depends(get_datasource),
) -> dict:
    """Check that the record store answers and report the datasource identity."""
    try:
        bundles = sorted(datasource.get_all_bundles())
    except RuntimeError:
        bundles = None

    return {
        "status": "ok" if bundles is not None else "degraded",
        "datasource_id": datasource.datasource_id,
        "bundles": bundles or [],
    }
