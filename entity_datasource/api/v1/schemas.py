"""
API models for the datasource endpoints.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class Item(BaseModel):
    """
    API representation of an indexable item.

    Maps from the domain Item entity for API responses.
    """

    item_id: str = Field(description="Composite item id ('<record-id>:<language>')")
    record_id: str = Field(description="Identifier of the underlying record")
    record_type: str = Field(description="Record type of the underlying record")
    bundle: str = Field(description="Bundle of the underlying record")
    langcode: str = Field(description="Language of this variant")
    label: str | None = Field(default=None, description="Human-readable label")
    url: str | None = Field(default=None, description="Canonical location of the record")
    values: dict[str, Any] = Field(default_factory=dict, description="Field values of this variant")


class LoadItemsRequest(BaseModel):
    """
    Request body for POST /datasource/items/load.
    """
    item_ids: list[str] = Field(description="Item ids to load")


class LoadItemsResponse(BaseModel):
    items: dict[str, Item] = Field(description="Loaded items keyed by item id")
    missing: list[str] = Field(
        default_factory=list,
        description="Requested ids that could not be loaded",
    )


class ScopeConfiguration(BaseModel):
    """
    Scope configuration of the datasource.

    Omitted keys take their default values, since a configuration is
    always replaced as a whole.
    """
    mode: Literal["INCLUDE_ALL_EXCEPT", "EXCLUDE_ALL_EXCEPT"] = Field(
        default="INCLUDE_ALL_EXCEPT",
        description="INCLUDE_ALL_EXCEPT indexes everything not selected; "
        "EXCLUDE_ALL_EXCEPT indexes only the selected bundles",
    )
    selected: list[str] = Field(default_factory=list, description="Selected bundles")


class ConfigurationResponse(BaseModel):
    configuration: ScopeConfiguration
    summary: str = Field(description="Human-readable description of the scope")
    indexed_bundles: list[str] = Field(description="Bundles currently in scope")


class ScopeDiff(BaseModel):
    """Bundles whose items started or stopped being tracked."""
    start: list[str] = Field(default_factory=list)
    stop: list[str] = Field(default_factory=list)


class DependencySet(BaseModel):
    module: list[str] = Field(default_factory=list, description="Provider modules")
    config: list[str] = Field(default_factory=list, description="Configuration objects")


class ItemIdsResponse(BaseModel):
    item_ids: list[str]
    limit: int | None = None
    offset: int = 0
