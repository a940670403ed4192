"""Deterministic node IDs.

An ID is ``{node_type}:{token}`` where ``token`` is the unpadded URL-safe
base64 of the first 12 bytes of SHA-256 over the canonical string::

    host:ip=10.0.0.1
    port:host_id=10.0.0.1|number=443|protocol=tcp

Only identifying properties (from the registry) take part, sorted by name,
so insertion order and extra properties never change the result. Uniqueness
is probabilistic: two different natural keys share an ID with probability
around 2**-96 per pair. No collision detection is performed.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import re
from collections.abc import Mapping
from typing import Any

from nodeforge.knowledge.errors import UnrepresentableValueError
from nodeforge.knowledge.properties import canonicalize
from nodeforge.knowledge.registry import NodeTypeRegistry

logger = logging.getLogger(__name__)

DIGEST_BYTES = 12
TOKEN_LENGTH = 16  # base64 of 12 bytes, no padding

_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]{%d}" % TOKEN_LENGTH)


def encode_digest(canonical: str) -> str:
    """Token for a canonical string."""
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest[:DIGEST_BYTES]).rstrip(b"=").decode("ascii")


def is_canonical_id(value: str, node_type: str | None = None) -> bool:
    """True if ``value`` has the shape of a generated ID."""
    prefix, sep, token = value.rpartition(":")
    if not sep or not prefix:
        return False
    if node_type is not None and prefix != node_type:
        return False
    return _TOKEN_RE.fullmatch(token) is not None


class DeterministicIdGenerator:
    """Builds IDs from a node type and its identifying properties.

    Usage::

        gen = DeterministicIdGenerator(NodeTypeRegistry.default())
        gen.generate("host", {"ip": "10.0.0.1"})   # "host:..."
    """

    def __init__(self, registry: NodeTypeRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> NodeTypeRegistry:
        return self._registry

    def generate(self, node_type: str, properties: Mapping[str, Any]) -> str:
        """Deterministic ID for a node.

        Raises NodeTypeNotRegisteredError, MissingIdentifyingPropertiesError
        or UnrepresentableValueError.
        """
        canonical = self.canonical_string(node_type, properties)
        node_id = f"{node_type}:{encode_digest(canonical)}"
        logger.debug("Generated %s from %r", node_id, canonical)
        return node_id

    def canonical_string(self, node_type: str, properties: Mapping[str, Any]) -> str:
        """``{node_type}:name1=val1|name2=val2`` over sorted identifying names."""
        names = self._registry.get_identifying_properties(node_type)
        self._registry.validate_properties(node_type, properties)

        pairs = []
        for name in sorted(names):
            try:
                normalized = canonicalize(properties[name])
            except UnrepresentableValueError as e:
                raise UnrepresentableValueError(str(e), property_name=name) from e
            pairs.append(f"{name}={normalized}")
        return f"{node_type}:{'|'.join(pairs)}"
