"""Tests for node validation."""

from __future__ import annotations

import logging

import pytest

from nodeforge.domain.validation import (
    CORE_NODE_TYPES,
    IssueKind,
    NodeValidator,
    ValidationIssue,
    ValidationResult,
    is_core_type,
)
from nodeforge.knowledge.errors import (
    FieldConstraintError,
    NodeValidationError,
    ParentRequiredError,
)


class TestCoreTypes:
    def test_core_set(self):
        assert len(CORE_NODE_TYPES) == 10
        assert is_core_type("port")
        assert not is_core_type("mission_run")
        assert not is_core_type("vpn_gateway")


class TestParentRequirement:
    def test_port_without_parent(self, validator, port_props):
        result = validator.validate_node("port", port_props, has_parent=False)
        assert not result.ok
        [issue] = result.issues
        assert issue.kind is IssueKind.PARENT_REQUIRED
        assert issue.field == "host_id"
        assert issue.message == (
            "port requires a parent host (HAS_PORT). Declare the parent before storing the node"
        )

    def test_port_with_parent(self, validator, port_props):
        assert validator.validate_node("port", port_props, has_parent=True).ok

    @pytest.mark.parametrize(
        ("node_type", "props"),
        [
            ("subdomain", {"name": "api.example.com"}),
            ("service", {"name": "ssh"}),
            ("endpoint", {"url": "/login"}),
            ("evidence", {"type": "http"}),
        ],
    )
    def test_child_types_require_parent(self, validator, node_type, props):
        result = validator.validate_node(node_type, props, has_parent=False)
        assert [i.kind for i in result.issues] == [IssueKind.PARENT_REQUIRED]

    def test_root_never_needs_parent(self, validator, host_props):
        assert validator.validate_node("host", host_props, has_parent=False).ok
        assert validator.validate_node("host", host_props, has_parent=True).ok


class TestFieldRules:
    def test_host_without_ip_or_hostname(self, validator):
        result = validator.validate_node("host", {"os": "Linux"}, has_parent=False)
        assert result.messages == ["host requires either ip or hostname"]
        assert result.issues[0].kind is IssueKind.FIELD_CONSTRAINT

    def test_port_range(self, validator):
        result = validator.validate_node("port", {"number": 70000}, has_parent=True)
        assert result.messages == ["port number must be between 1 and 65535, got 70000"]

    def test_parent_and_field_issues_combined(self, validator):
        result = validator.validate_node("port", {"number": 0}, has_parent=False)
        assert [i.kind for i in result.issues] == [
            IssueKind.PARENT_REQUIRED, IssueKind.FIELD_CONSTRAINT,
        ]

    def test_wrong_value_type(self, validator):
        result = validator.validate_node("port", {"number": "https"}, has_parent=True)
        [issue] = result.issues
        assert issue.kind is IssueKind.FIELD_CONSTRAINT
        assert issue.field == "number"
        assert issue.message.startswith("port field 'number' is invalid: ")

    def test_finding_rules(self, validator):
        result = validator.validate_node(
            "finding", {"title": "SQLi", "confidence": 2.0}, has_parent=False,
        )
        assert result.messages == ["confidence must be between 0.0 and 1.0, got 2.0"]

    def test_inputs_not_mutated(self, validator):
        props = {"number": 443}
        validator.validate_node("port", props, has_parent=True)
        assert props == {"number": 443}


class TestBypass:
    @pytest.mark.parametrize(
        "node_type", ["mission_run", "agent_run", "api", "vpn_gateway", "Port", ""],
    )
    def test_non_core_types_pass(self, validator, node_type):
        assert validator.validate_node(node_type, {}, has_parent=False).ok

    def test_bypass_logged(self, validator, caplog):
        with caplog.at_level(logging.DEBUG, logger="nodeforge.domain.validation"):
            validator.validate_node("vpn_gateway", {}, has_parent=False)
        assert "vpn_gateway" in caplog.text

    def test_bypass_logging_disabled(self, taxonomy, caplog):
        quiet = NodeValidator(taxonomy, log_bypassed_types=False)
        with caplog.at_level(logging.DEBUG, logger="nodeforge.domain.validation"):
            quiet.validate_node("vpn_gateway", {}, has_parent=False)
        assert caplog.text == ""


class TestValidationResult:
    def test_passed(self):
        result = ValidationResult.passed("host")
        assert result.ok
        result.raise_for_errors()

    def test_raise_parent_required(self, validator):
        result = validator.validate_node("port", {"number": 22}, has_parent=False)
        with pytest.raises(ParentRequiredError) as exc:
            result.raise_for_errors()
        assert exc.value.node_type == "port"
        assert exc.value.issues == result.issues

    def test_raise_field_constraint(self, validator):
        result = validator.validate_node("domain", {}, has_parent=False)
        with pytest.raises(FieldConstraintError, match="domain name cannot be empty"):
            result.raise_for_errors()

    def test_raise_mixed(self, validator):
        result = validator.validate_node("port", {"number": 0}, has_parent=False)
        with pytest.raises(NodeValidationError) as exc:
            result.raise_for_errors()
        assert type(exc.value) is NodeValidationError
        assert str(exc.value) == "; ".join(result.messages)

    def test_by_kind(self):
        result = ValidationResult(
            node_type="port",
            issues=[
                ValidationIssue(kind=IssueKind.PARENT_REQUIRED, message="a"),
                ValidationIssue(kind=IssueKind.FIELD_CONSTRAINT, message="b"),
            ],
        )
        assert [i.message for i in result.by_kind(IssueKind.FIELD_CONSTRAINT)] == ["b"]


class TestBooleanNumbers:
    def test_boolean_port_number_rejected(self, validator):
        result = validator.validate_node("port", {"number": True}, has_parent=True)
        [issue] = result.issues
        assert issue.kind is IssueKind.FIELD_CONSTRAINT
        assert issue.field == "number"
        assert "boolean" in issue.message

    def test_boolean_status_code_rejected(self, validator):
        result = validator.validate_node(
            "endpoint", {"url": "/login", "status_code": False}, has_parent=True,
        )
        assert [i.field for i in result.issues] == ["status_code"]
