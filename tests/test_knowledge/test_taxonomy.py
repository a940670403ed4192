"""Tests for the taxonomy graph."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from nodeforge.knowledge.errors import TaxonomyConfigError
from nodeforge.knowledge.taxonomy import (
    DEFAULT_PARENT_RELATIONSHIPS,
    DEFAULT_ROOT_NODE_TYPES,
    ParentRelationship,
    Taxonomy,
)


def _rel(child, parent, label=None):
    return ParentRelationship(
        child_type=child,
        parent_type=parent,
        ref_field=f"{parent}_id",
        relationship=label or f"HAS_{child.upper()}",
    )


class TestDefaultTaxonomy:
    def test_roots(self, taxonomy):
        assert taxonomy.root_node_types() == [
            "certificate", "domain", "finding", "host", "mission", "technique", "technology",
        ]

    def test_child_types(self, taxonomy):
        assert [r.child_type for r in taxonomy.relationships()] == sorted([
            "mission_run", "agent_run", "tool_execution", "llm_call",
            "subdomain", "port", "service", "endpoint", "evidence",
        ])

    @pytest.mark.parametrize(
        ("child", "parent", "ref_field", "label"),
        [
            ("mission_run", "mission", "mission_id", "HAS_RUN"),
            ("agent_run", "mission_run", "mission_run_id", "CONTAINS_AGENT_RUN"),
            ("tool_execution", "agent_run", "agent_run_id", "EXECUTED_TOOL"),
            ("llm_call", "agent_run", "agent_run_id", "MADE_CALL"),
            ("subdomain", "domain", "domain_id", "HAS_SUBDOMAIN"),
            ("port", "host", "host_id", "HAS_PORT"),
            ("service", "port", "port_id", "RUNS_SERVICE"),
            ("endpoint", "service", "service_id", "HAS_ENDPOINT"),
            ("evidence", "finding", "finding_id", "HAS_EVIDENCE"),
        ],
    )
    def test_relationship(self, taxonomy, child, parent, ref_field, label):
        rel = taxonomy.get_parent_relationship(child)
        assert rel.parent_type == parent
        assert rel.ref_field == ref_field
        assert rel.relationship == label
        assert rel.parent_field == "id"
        assert rel.required is True

    def test_roots_and_children_disjoint(self):
        assert not DEFAULT_ROOT_NODE_TYPES & set(DEFAULT_PARENT_RELATIONSHIPS)

    def test_labels_unique(self, taxonomy):
        labels = [r.relationship for r in taxonomy.relationships()]
        assert len(labels) == len(set(labels))

    def test_every_chain_ends_at_root(self, taxonomy):
        for rel in taxonomy.relationships():
            chain = taxonomy.parent_chain(rel.child_type)
            assert taxonomy.is_root_node_type(chain[-1])
            assert len(chain) - 1 <= taxonomy.max_depth


class TestLookups:
    def test_root_and_child(self, taxonomy):
        assert taxonomy.is_root_node_type("host")
        assert not taxonomy.is_child_node_type("host")
        assert taxonomy.is_child_node_type("port")
        assert not taxonomy.is_root_node_type("port")

    def test_unknown_type_is_neither(self, taxonomy):
        assert not taxonomy.is_root_node_type("api")
        assert not taxonomy.is_child_node_type("api")
        assert not taxonomy.is_known("api")
        assert taxonomy.get_parent_relationship("api") is None

    def test_root_has_no_parent(self, taxonomy):
        assert taxonomy.get_parent_relationship("host") is None

    def test_parent_chain(self, taxonomy):
        assert taxonomy.parent_chain("endpoint") == ["endpoint", "service", "port", "host"]
        assert taxonomy.parent_chain("llm_call") == [
            "llm_call", "agent_run", "mission_run", "mission",
        ]
        assert taxonomy.parent_chain("host") == ["host"]
        assert taxonomy.parent_chain("api") == []

    def test_children_of(self, taxonomy):
        assert taxonomy.children_of("agent_run") == ["llm_call", "tool_execution"]
        assert taxonomy.children_of("endpoint") == []

    def test_node_types(self, taxonomy):
        assert len(taxonomy.node_types()) == 16

    def test_lookup_returns_copy(self, taxonomy):
        rel = taxonomy.get_parent_relationship("port")
        assert rel is not taxonomy.get_parent_relationship("port")
        assert rel == taxonomy.get_parent_relationship("port")

    def test_relationship_is_frozen(self, taxonomy):
        rel = taxonomy.get_parent_relationship("port")
        with pytest.raises(ValidationError):
            rel.parent_type = "domain"

    def test_parent_edge(self, taxonomy):
        edge = taxonomy.parent_edge("port", "port:abc", "host:xyz")
        assert edge.from_id == "host:xyz"
        assert edge.to_id == "port:abc"
        assert edge.type == "HAS_PORT"

    def test_parent_edge_for_root(self, taxonomy):
        with pytest.raises(ValueError, match="no parent relationship"):
            taxonomy.parent_edge("host", "host:abc", "x:y")


class TestParentRelationship:
    def test_blank_field_rejected(self):
        with pytest.raises(ValidationError):
            ParentRelationship(
                child_type="a", parent_type=" ", ref_field="b_id", relationship="X",
            )

    def test_parent_field_must_be_id(self):
        with pytest.raises(ValidationError, match="parent_field"):
            ParentRelationship(
                child_type="a", parent_type="b", ref_field="b_id",
                relationship="X", parent_field="name",
            )

    def test_optional_not_supported(self):
        with pytest.raises(ValidationError, match="optional"):
            ParentRelationship(
                child_type="a", parent_type="b", ref_field="b_id",
                relationship="X", required=False,
            )


class TestConstruction:
    def test_minimal(self):
        tax = Taxonomy({"a"}, {"b": _rel("b", "a")})
        assert tax.parent_chain("b") == ["b", "a"]

    def test_root_and_child_overlap(self):
        with pytest.raises(TaxonomyConfigError, match="both root and child"):
            Taxonomy({"a", "b"}, {"b": _rel("b", "a")})

    def test_key_mismatch(self):
        with pytest.raises(TaxonomyConfigError, match="declares child_type"):
            Taxonomy({"a"}, {"c": _rel("b", "a")})

    def test_unknown_parent(self):
        with pytest.raises(TaxonomyConfigError, match="unknown parent"):
            Taxonomy({"a"}, {"b": _rel("b", "z")})

    def test_duplicate_label(self):
        with pytest.raises(TaxonomyConfigError, match="HAS_CHILD"):
            Taxonomy(
                {"a"},
                {
                    "b": _rel("b", "a", "HAS_CHILD"),
                    "c": _rel("c", "a", "HAS_CHILD"),
                },
            )

    def test_cycle(self):
        with pytest.raises(TaxonomyConfigError, match="cycle"):
            Taxonomy(
                {"root"},
                {
                    "b": _rel("b", "c"),
                    "c": _rel("c", "b"),
                },
            )

    def test_self_parent(self):
        with pytest.raises(TaxonomyConfigError, match="cycle"):
            Taxonomy({"root"}, {"b": _rel("b", "b")})

    def test_depth_limit(self):
        rels = {
            "c1": _rel("c1", "root"),
            "c2": _rel("c2", "c1"),
            "c3": _rel("c3", "c2"),
        }
        assert Taxonomy({"root"}, rels, max_depth=3).parent_chain("c3")[-1] == "root"
        with pytest.raises(TaxonomyConfigError, match="exceeds 2 hops"):
            Taxonomy({"root"}, rels, max_depth=2)

    def test_max_depth_must_be_positive(self):
        with pytest.raises(TaxonomyConfigError):
            Taxonomy({"a"}, {}, max_depth=0)

    def test_blank_root(self):
        with pytest.raises(TaxonomyConfigError):
            Taxonomy({""}, {})

    def test_source_tables_not_shared(self):
        rels = {"b": _rel("b", "a")}
        tax = Taxonomy({"a"}, rels)
        rels["c"] = _rel("c", "a")
        assert not tax.is_child_node_type("c")

    def test_default_depth_configurable(self):
        assert Taxonomy.default(max_depth=3).max_depth == 3
        with pytest.raises(TaxonomyConfigError):
            Taxonomy.default(max_depth=2)
