"""Typed views of core node property maps, with per-type field rules.

Each core node type gets a pydantic model built from the generic property
map. ``violations()`` returns the type's business-rule failures as
``(field, constraint, message)`` tuples; an empty list means the fields are
acceptable. Unknown properties are ignored.
"""

from __future__ import annotations

from typing import Annotated, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from nodeforge.knowledge.properties import reject_bool

Violation = tuple[str, str, str]

# numeric fields refuse booleans, which pydantic would read as 0 or 1
Number = Annotated[int, BeforeValidator(reject_bool)]
Score = Annotated[float, BeforeValidator(reject_bool)]


class CoreNode(BaseModel):
    """Base for typed core nodes."""

    model_config = ConfigDict(extra="ignore")

    node_type: ClassVar[str] = ""

    def violations(self) -> list[Violation]:
        return []


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class DomainNode(CoreNode):
    node_type: ClassVar[str] = "domain"

    name: str | None = None
    registrar: str = ""

    def violations(self) -> list[Violation]:
        if _blank(self.name):
            return [("name", "non_empty", "domain name cannot be empty")]
        return []


class SubdomainNode(CoreNode):
    node_type: ClassVar[str] = "subdomain"

    name: str | None = None
    parent_domain: str = ""

    def violations(self) -> list[Violation]:
        if _blank(self.name):
            return [("name", "non_empty", "subdomain name cannot be empty")]
        return []


class HostNode(CoreNode):
    """A host is identified by IP, but a hostname alone is acceptable."""

    node_type: ClassVar[str] = "host"

    ip: str | None = None
    hostname: str | None = None
    state: str = ""
    os: str = ""

    def violations(self) -> list[Violation]:
        if _blank(self.ip) and _blank(self.hostname):
            return [("ip", "one_of:ip,hostname", "host requires either ip or hostname")]
        return []


class PortNode(CoreNode):
    node_type: ClassVar[str] = "port"

    MIN_PORT: ClassVar[int] = 1
    MAX_PORT: ClassVar[int] = 65535

    number: Number = 0
    protocol: str = ""
    state: str = ""

    def violations(self) -> list[Violation]:
        if not self.MIN_PORT <= self.number <= self.MAX_PORT:
            return [(
                "number",
                f"range:{self.MIN_PORT}-{self.MAX_PORT}",
                f"port number must be between {self.MIN_PORT} and {self.MAX_PORT}, "
                f"got {self.number}",
            )]
        return []


class ServiceNode(CoreNode):
    node_type: ClassVar[str] = "service"

    name: str = ""
    version: str = ""
    banner: str = ""


class EndpointNode(CoreNode):
    node_type: ClassVar[str] = "endpoint"

    url: str | None = None
    method: str = ""
    status_code: Number | None = None

    def violations(self) -> list[Violation]:
        if _blank(self.url):
            return [("url", "non_empty", "endpoint URL cannot be empty")]
        return []


class TechnologyNode(CoreNode):
    node_type: ClassVar[str] = "technology"

    name: str = ""
    version: str = ""
    category: str = ""


class CertificateNode(CoreNode):
    node_type: ClassVar[str] = "certificate"

    fingerprint: str = ""
    fingerprint_sha256: str | None = None
    subject: str = ""
    issuer: str = ""


class FindingNode(CoreNode):
    """Security finding; confidence and CVSS score are optional."""

    node_type: ClassVar[str] = "finding"

    title: str | None = None
    severity: str = ""
    description: str = ""
    confidence: Score | None = None
    cvss_score: Score | None = None
    tags: list[str] = Field(default_factory=list)

    def violations(self) -> list[Violation]:
        found: list[Violation] = []
        if _blank(self.title):
            found.append(("title", "non_empty", "finding title cannot be empty"))
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            found.append((
                "confidence",
                "range:0.0-1.0",
                f"confidence must be between 0.0 and 1.0, got {self.confidence}",
            ))
        if self.cvss_score is not None and not 0.0 <= self.cvss_score <= 10.0:
            found.append((
                "cvss_score",
                "range:0.0-10.0",
                f"CVSS score must be between 0.0 and 10.0, got {self.cvss_score}",
            ))
        return found


class EvidenceNode(CoreNode):
    node_type: ClassVar[str] = "evidence"

    finding_id: str = ""
    type: str = ""
    fingerprint: str = ""
    content: str = ""


CORE_NODE_MODELS: dict[str, type[CoreNode]] = {
    model.node_type: model
    for model in (
        DomainNode,
        SubdomainNode,
        HostNode,
        PortNode,
        ServiceNode,
        EndpointNode,
        TechnologyNode,
        CertificateNode,
        FindingNode,
        EvidenceNode,
    )
}
