"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from .exceptions import InvalidScopeConfiguration


class ScopeMode(str, Enum):
    """Polarity of the bundle selection in a scope configuration."""

    INCLUDE_ALL_EXCEPT = "INCLUDE_ALL_EXCEPT"
    """Index every bundle except the selected ones"""

    EXCLUDE_ALL_EXCEPT = "EXCLUDE_ALL_EXCEPT"
    """Index only the selected bundles"""

    def inverted(self) -> "ScopeMode":
        if self is ScopeMode.INCLUDE_ALL_EXCEPT:
            return ScopeMode.EXCLUDE_ALL_EXCEPT
        return ScopeMode.INCLUDE_ALL_EXCEPT


@dataclass(frozen=True)
class ScopeConfiguration:
    """
    Bundle inclusion/exclusion policy of a datasource within one index.

    The default (INCLUDE_ALL_EXCEPT with nothing selected) puts every
    bundle in scope.
    """

    mode: ScopeMode = ScopeMode.INCLUDE_ALL_EXCEPT
    """How to interpret `selected`"""

    selected: FrozenSet[str] = field(default_factory=frozenset)
    """Bundles named by the policy"""

    def __post_init__(self) -> None:
        """Validate and normalize configuration data."""
        try:
            mode = ScopeMode(self.mode)
        except ValueError as e:
            raise InvalidScopeConfiguration(
                f"mode must be one of {[m.value for m in ScopeMode]}, got '{self.mode}'"
            ) from e

        if isinstance(self.selected, (str, bytes)):
            raise InvalidScopeConfiguration(
                "selected must be a collection of bundle names, not a string"
            )
        selected = frozenset(self.selected)
        for bundle in selected:
            if not isinstance(bundle, str) or not bundle:
                raise InvalidScopeConfiguration(
                    f"bundle names must be non-empty strings, got {bundle!r}"
                )

        # Frozen dataclass: normalized values have to go through object.__setattr__
        object.__setattr__(self, "mode", mode)
        object.__setattr__(self, "selected", selected)

    @classmethod
    def from_mapping(
        cls, data: Optional[Mapping[str, Any]], defaults: Optional["ScopeConfiguration"] = None
    ) -> "ScopeConfiguration":
        """
        Build a configuration from its persisted form.

        Keys missing from `data` are taken from `defaults`, so a configuration
        is never applied partially.

        Args:
            data: Mapping with optional "mode" and "selected" keys
            defaults: Configuration supplying missing keys

        Returns:
            A validated ScopeConfiguration

        Raises:
            InvalidScopeConfiguration: If the mapping is structurally invalid
        """
        defaults = defaults or cls()
        if data is None:
            return defaults
        if not isinstance(data, Mapping):
            raise InvalidScopeConfiguration(
                f"configuration must be a mapping, got {type(data).__name__}"
            )

        unknown = set(data) - {"mode", "selected"}
        if unknown:
            raise InvalidScopeConfiguration(
                f"unknown configuration keys: {sorted(unknown)}"
            )

        selected = data.get("selected", defaults.selected)
        if selected is None:
            selected = frozenset()
        return cls(mode=data.get("mode", defaults.mode), selected=selected)

    def to_mapping(self) -> Dict[str, Any]:
        """Persisted form of this configuration."""
        return {"mode": self.mode.value, "selected": sorted(self.selected)}

    def with_mode(self, mode: ScopeMode, all_bundles: Iterable[str]) -> "ScopeConfiguration":
        """
        Re-express this configuration under another mode.

        The selection is inverted against `all_bundles` when the mode
        changes, so that the resolved scope stays the same for bundles that
        exist in `all_bundles`.
        """
        mode = ScopeMode(mode)
        if mode is self.mode:
            return self
        return ScopeConfiguration(
            mode=mode,
            selected=frozenset(all_bundles) - self.selected,
        )

    def is_selected(self, bundle: str) -> bool:
        return bundle in self.selected


ConfigurationInput = Union[ScopeConfiguration, Mapping[str, Any], None]


@dataclass(frozen=True)
class ScopeDiff:
    """Bundles that entered (`start`) and left (`stop`) the scope."""

    start: FrozenSet[str] = field(default_factory=frozenset)
    stop: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Validate diff constraints."""
        object.__setattr__(self, "start", frozenset(self.start))
        object.__setattr__(self, "stop", frozenset(self.stop))
        overlap = self.start & self.stop
        if overlap:
            raise ValueError(
                f"start and stop must be disjoint, both contain {sorted(overlap)}"
            )

    def is_empty(self) -> bool:
        """Check if no bundle changed scope."""
        return not self.start and not self.stop


@dataclass(frozen=True)
class FieldDefinition:
    """
    Definition of a field attached to a record type (and maybe a bundle).

    Only configurable fields are backed by a configuration object; base
    fields are built into the record type.
    """

    name: str
    """Machine name of the field"""

    configurable: bool = False
    """True for fields backed by a configuration object"""

    config_dependency_name: Optional[str] = None
    """Identifier of the configuration object owning this field"""

    target_type: Optional[str] = None
    """Referenced record type, for reference fields"""

    label: Optional[str] = None
    """Human-readable label"""

    def __post_init__(self) -> None:
        """Validate field definition data."""
        if not self.name or not self.name.strip():
            raise ValueError("Field name cannot be empty")

        if self.configurable and not self.config_dependency_name:
            raise ValueError(
                f"Configurable field '{self.name}' requires a config_dependency_name"
            )

    def is_reference(self) -> bool:
        """Check if this field points at records of another record type."""
        return bool(self.target_type)


@dataclass(frozen=True)
class DependencySet:
    """
    Configuration objects a datasource's indexing behaviour relies on.

    Dependencies are grouped by kind: "module" for the providers of record
    types and "config" for configuration objects backing fields.
    """

    module: FrozenSet[str] = field(default_factory=frozenset)
    config: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "module", frozenset(self.module))
        object.__setattr__(self, "config", frozenset(self.config))

    def union(self, other: "DependencySet") -> "DependencySet":
        return DependencySet(
            module=self.module | other.module,
            config=self.config | other.config,
        )

    def is_empty(self) -> bool:
        return not self.module and not self.config

    def to_mapping(self) -> Dict[str, list]:
        """Sorted, kind-keyed form; kinds without dependencies are omitted."""
        result = {}
        if self.module:
            result["module"] = sorted(self.module)
        if self.config:
            result["config"] = sorted(self.config)
        return result
