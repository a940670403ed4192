"""Shared test fixtures."""

import pytest

from nodeforge.core.facade import IntegrityEngine
from nodeforge.domain.validation import NodeValidator
from nodeforge.knowledge.identity import DeterministicIdGenerator
from nodeforge.knowledge.registry import NodeTypeRegistry
from nodeforge.knowledge.taxonomy import Taxonomy


@pytest.fixture
def registry():
    return NodeTypeRegistry.default()


@pytest.fixture
def taxonomy():
    return Taxonomy.default()


@pytest.fixture
def generator(registry):
    return DeterministicIdGenerator(registry)


@pytest.fixture
def validator(taxonomy):
    return NodeValidator(taxonomy)


@pytest.fixture
def engine(registry, taxonomy):
    return IntegrityEngine(registry, taxonomy)


@pytest.fixture
def host_props():
    return {"ip": "10.0.0.1", "hostname": "web01.example.com", "os": "Linux"}


@pytest.fixture
def port_props():
    return {"host_id": "10.0.0.1", "number": 443, "protocol": "tcp", "state": "open"}
