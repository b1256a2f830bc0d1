"""
Domain error kinds.

All of them derive from ValueError so callers that only care about
"bad input" can keep catching the builtin, the same way the rest of the
domain raises ValueError from validation.
"""


class MalformedIdentity(ValueError):
    """An item id cannot be split into a record id and a language code."""


class InvalidScopeConfiguration(ValueError):
    """A scope configuration is structurally invalid (e.g. unknown mode)."""


class UnresolvableDependency(ValueError):
    """A property path does not match any field of the record type."""

    def __init__(self, record_type: str, property_path: str) -> None:
        super().__init__(
            f"Property path '{property_path}' does not match any field "
            f"of record type '{record_type}'"
        )
        self.record_type = record_type
        self.property_path = property_path
