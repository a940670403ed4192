"""Node validation: parent requirements plus per-type field rules.

``NodeValidator.validate_node`` decides whether a candidate node may be
written. Only the core node types are checked; any other type (custom or
extension types) passes untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from nodeforge.domain.nodes import CORE_NODE_MODELS
from nodeforge.knowledge.errors import (
    FieldConstraintError,
    NodeValidationError,
    ParentRequiredError,
)
from nodeforge.knowledge.taxonomy import Taxonomy

logger = logging.getLogger(__name__)

CORE_NODE_TYPES: frozenset[str] = frozenset(CORE_NODE_MODELS)


def is_core_type(node_type: str) -> bool:
    return node_type in CORE_NODE_TYPES


class IssueKind(StrEnum):
    PARENT_REQUIRED = "parent_required"
    PARENT_MISMATCH = "parent_mismatch"
    FIELD_CONSTRAINT = "field_constraint"


class ValidationIssue(BaseModel, frozen=True):
    """One reason a node was rejected."""

    kind: IssueKind
    message: str
    field: str = ""
    constraint: str = ""


class ValidationResult(BaseModel):
    """Verdict for a single candidate node."""

    node_type: str
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def messages(self) -> list[str]:
        return [i.message for i in self.issues]

    def by_kind(self, kind: IssueKind) -> list[ValidationIssue]:
        return [i for i in self.issues if i.kind == kind]

    def raise_for_errors(self) -> None:
        """Raise NodeValidationError (or a narrower subclass) if not ok."""
        if self.ok:
            return
        kinds = {i.kind for i in self.issues}
        if kinds == {IssueKind.PARENT_REQUIRED}:
            raise ParentRequiredError(self.node_type, self.issues)
        if kinds == {IssueKind.FIELD_CONSTRAINT}:
            raise FieldConstraintError(self.node_type, self.issues)
        raise NodeValidationError(self.node_type, self.issues)

    @classmethod
    def passed(cls, node_type: str) -> ValidationResult:
        return cls(node_type=node_type)


class NodeValidator:
    """Checks candidate nodes against the taxonomy and core field rules.

    Pure: never mutates its inputs, never generates IDs.
    """

    def __init__(self, taxonomy: Taxonomy, *, log_bypassed_types: bool = True) -> None:
        self._taxonomy = taxonomy
        self._log_bypassed = log_bypassed_types

    @property
    def taxonomy(self) -> Taxonomy:
        return self._taxonomy

    def validate_node(
        self, node_type: str, properties: Mapping[str, Any], has_parent: bool,
    ) -> ValidationResult:
        if not is_core_type(node_type):
            if self._log_bypassed:
                logger.debug("Skipping structural validation for custom type %r", node_type)
            return ValidationResult.passed(node_type)

        issues = self._parent_issues(node_type, has_parent)
        issues.extend(self._field_issues(node_type, properties))
        return ValidationResult(node_type=node_type, issues=issues)

    def _parent_issues(self, node_type: str, has_parent: bool) -> list[ValidationIssue]:
        if self._taxonomy.is_root_node_type(node_type):
            return []
        rel = self._taxonomy.get_parent_relationship(node_type)
        if rel is None or not rel.required or has_parent:
            return []
        return [ValidationIssue(
            kind=IssueKind.PARENT_REQUIRED,
            field=rel.ref_field,
            constraint=f"parent:{rel.parent_type}",
            message=(
                f"{node_type} requires a parent {rel.parent_type} "
                f"({rel.relationship}). Declare the parent before storing the node"
            ),
        )]

    def _field_issues(
        self, node_type: str, properties: Mapping[str, Any],
    ) -> list[ValidationIssue]:
        model_cls = CORE_NODE_MODELS[node_type]
        try:
            node = model_cls.model_validate(dict(properties))
        except ValidationError as e:
            return [
                ValidationIssue(
                    kind=IssueKind.FIELD_CONSTRAINT,
                    field=".".join(str(p) for p in err["loc"]),
                    constraint=err["type"],
                    message=(
                        f"{node_type} field {'.'.join(str(p) for p in err['loc'])!r} "
                        f"is invalid: {err['msg']}"
                    ),
                )
                for err in e.errors()
            ]
        return [
            ValidationIssue(
                kind=IssueKind.FIELD_CONSTRAINT, field=field, constraint=constraint, message=msg,
            )
            for field, constraint, msg in node.violations()
        ]
