"""
Domain entities for the entity datasource.

Entities are objects with a unique identity that runs through time and
different representations. They are the core building blocks of the domain.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .identity import encode_item_id


@dataclass
class Record:
    """
    A stored record of some record type, with its language variants.

    Each translation holds the field values of that language variant.
    Records of types without a bundle concept use the record type name as
    their bundle.
    """

    id: str
    """Identifier of the record within its record type"""

    record_type: str
    """Record type this record belongs to (e.g. 'node', 'media')"""

    bundle: str
    """Classification tag of this record"""

    label: Optional[str] = None
    """Human-readable label"""

    translations: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    """Field values keyed by language code"""

    url: Optional[str] = None
    """Canonical location of the record, if it has one"""

    def __post_init__(self) -> None:
        """Validate record data."""
        if not str(self.id).strip():
            raise ValueError("Record id cannot be empty")
        self.id = str(self.id)

        if not self.record_type or not self.record_type.strip():
            raise ValueError("Record type cannot be empty")

        if not self.bundle or not self.bundle.strip():
            raise ValueError("Record bundle cannot be empty")

    def __eq__(self, other: object) -> bool:
        """Two records are equal if they have the same type and ID."""
        if not isinstance(other, Record):
            return NotImplemented
        return (self.record_type, self.id) == (other.record_type, other.id)

    def __hash__(self) -> int:
        return hash((self.record_type, self.id))

    def languages(self) -> List[str]:
        """Language codes this record has a translation in."""
        return list(self.translations)

    def has_translation(self, langcode: str) -> bool:
        return langcode in self.translations

    def get_translation(self, langcode: str) -> "Item":
        """
        Get the indexable item for one language variant.

        Raises:
            KeyError: If the record has no translation in that language
        """
        if langcode not in self.translations:
            raise KeyError(
                f"Record '{self.record_type}:{self.id}' has no '{langcode}' translation"
            )
        return Item(record=self, langcode=langcode)

    def item_ids(self) -> List[str]:
        """One item id per translation of this record."""
        return [encode_item_id(self.id, langcode) for langcode in self.translations]


@dataclass
class Item:
    """
    The indexable unit: one language variant of one record.

    Items have no lifecycle of their own; they are derived on demand from a
    record and one of its translations.
    """

    record: Record
    langcode: str

    def __post_init__(self) -> None:
        """Validate that the translation exists."""
        if not self.record.has_translation(self.langcode):
            raise ValueError(
                f"Record '{self.record.id}' has no translation '{self.langcode}'"
            )

    @property
    def item_id(self) -> str:
        return encode_item_id(self.record.id, self.langcode)

    @property
    def label(self) -> Optional[str]:
        return self.record.label

    @property
    def values(self) -> Dict[str, Any]:
        """Field values of this language variant."""
        return self.record.translations[self.langcode]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return NotImplemented
        return self.record == other.record and self.langcode == other.langcode

    def __hash__(self) -> int:
        return hash((self.record.record_type, self.record.id, self.langcode))


@dataclass(frozen=True)
class IndexField:
    """A field of a search index, read from one datasource's items."""

    field_id: str
    """Identifier of the field within the index"""

    datasource_id: Optional[str]
    """Datasource the field is read from; None for datasource-independent fields"""

    property_path: str
    """Path of the property on the datasource's items (e.g. 'image:entity:alt')"""

    def __post_init__(self) -> None:
        if not self.field_id or not self.field_id.strip():
            raise ValueError("Index field id cannot be empty")
        if not self.property_path or not self.property_path.strip():
            raise ValueError("Index field property_path cannot be empty")
