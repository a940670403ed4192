"""Error types raised by the identity and integrity layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nodeforge.domain.validation import ValidationIssue


class NodeforgeError(Exception):
    """Base class for every error raised by nodeforge."""


class RegistryConfigError(NodeforgeError, ValueError):
    """The identifying-property table is malformed."""


class TaxonomyConfigError(NodeforgeError, ValueError):
    """The taxonomy tables violate a structural invariant."""


class NodeTypeNotRegisteredError(NodeforgeError, KeyError):
    """The node type has no identifying properties registered."""

    def __init__(self, node_type: str) -> None:
        self.node_type = node_type
        super().__init__(f"node type not registered: {node_type!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return self.args[0]


class MissingIdentifyingPropertiesError(NodeforgeError, ValueError):
    """One or more identifying properties are absent, null or blank."""

    def __init__(self, node_type: str, missing: list[str]) -> None:
        self.node_type = node_type
        self.missing = list(missing)
        super().__init__(
            f"missing identifying properties for node type '{node_type}': "
            f"{', '.join(self.missing)}"
        )


class UnrepresentableValueError(NodeforgeError, ValueError):
    """A property value has no canonical text form."""

    def __init__(self, message: str, property_name: str | None = None) -> None:
        self.property_name = property_name
        if property_name:
            message = f"failed to normalize property {property_name!r}: {message}"
        super().__init__(message)


class NodeValidationError(NodeforgeError, ValueError):
    """A candidate node failed structural or field validation."""

    def __init__(self, node_type: str, issues: list[ValidationIssue]) -> None:
        self.node_type = node_type
        self.issues = list(issues)
        super().__init__("; ".join(issue.message for issue in self.issues))


class ParentRequiredError(NodeValidationError):
    """A child node type was submitted without a parent reference."""


class FieldConstraintError(NodeValidationError):
    """A type-specific field rule was violated."""


class InvalidScopeError(NodeforgeError, ValueError):
    """A query's mission scope settings are malformed."""


class InvalidQueryError(InvalidScopeError):
    """A query's retrieval settings are malformed."""
