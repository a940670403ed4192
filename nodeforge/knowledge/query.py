"""Knowledge graph queries: mission scoping and retrieval settings."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from nodeforge.knowledge.errors import InvalidQueryError, InvalidScopeError
from nodeforge.knowledge.properties import reject_bool

_WEIGHT_EPSILON = 1e-4


class MissionScope(StrEnum):
    """How far a read reaches across mission and run boundaries."""

    CURRENT_RUN = "current_run"    # only the invoking run's writes
    SAME_MISSION = "same_mission"  # every run of the named mission
    ALL = "all"                    # unscoped

    @classmethod
    def default(cls) -> MissionScope:
        # unscoped, so callers written before scoping keep their results
        return cls.ALL

    @classmethod
    def parse(cls, value: str | None) -> MissionScope:
        """Scope from a literal; empty or None means the default."""
        if value is None or value == "":
            return cls.default()
        if isinstance(value, MissionScope):
            return value
        scope = _SCOPE_ALIASES.get(value)
        if scope is None:
            msg = (
                f"invalid mission scope: {value} "
                "(must be one of: current_run, same_mission, all)"
            )
            raise InvalidScopeError(msg)
        return scope


_SCOPE_ALIASES: dict[str, MissionScope] = {
    "current_run": MissionScope.CURRENT_RUN,
    "mission_run": MissionScope.CURRENT_RUN,
    "same_mission": MissionScope.SAME_MISSION,
    "mission": MissionScope.SAME_MISSION,
    "all": MissionScope.ALL,
    "global": MissionScope.ALL,
}


def _coerce_scope(value: Any) -> Any:
    if value is None or value == "":
        return MissionScope.default()
    if isinstance(value, str) and value in _SCOPE_ALIASES:
        return _SCOPE_ALIASES[value]
    # unknown literals are kept and rejected by check_scope()
    return value


class Query(BaseModel):
    """A knowledge-graph read: what to retrieve and how far to look.

    Scope fields bound the read across missions and runs; the retrieval
    fields (text, embedding, weights) are passed through to the query layer.
    """

    mission_scope: MissionScope | str = MissionScope.ALL
    mission_name: str = ""
    run_number: int | None = None
    include_run_metadata: bool = False

    text: str = ""
    embedding: list[float] = Field(default_factory=list)
    top_k: int = 10
    max_hops: int = 3
    min_score: float = 0.7
    node_types: list[str] = Field(default_factory=list)
    mission_id: str = ""
    vector_weight: float = 0.6
    graph_weight: float = 0.4

    @field_validator("mission_scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> Any:
        return _coerce_scope(value)

    @field_validator("run_number", "top_k", "max_hops", "min_score", mode="before")
    @classmethod
    def _numbers_not_bool(cls, value: Any) -> Any:
        return reject_bool(value)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def semantic(cls, text: str, **kw: Any) -> Query:
        return cls(text=text, **kw)

    @classmethod
    def from_embedding(cls, embedding: list[float], **kw: Any) -> Query:
        return cls(embedding=list(embedding), **kw)

    @classmethod
    def structured(cls, *node_types: str, **kw: Any) -> Query:
        """Pure graph lookup by node type, no semantic ranking."""
        defaults: dict[str, Any] = {
            "top_k": 100,
            "max_hops": 0,
            "min_score": 0.0,
            "vector_weight": 0.0,
            "graph_weight": 1.0,
        }
        return cls(node_types=list(node_types), **{**defaults, **kw})

    # ------------------------------------------------------------------
    # Fluent builders (return copies)
    # ------------------------------------------------------------------

    def with_scope(self, scope: MissionScope | str | None) -> Query:
        return self.model_copy(update={"mission_scope": _coerce_scope(scope)})

    def with_mission_name(self, name: str) -> Query:
        return self.model_copy(update={"mission_name": name})

    def with_run_number(self, run_number: int | None) -> Query:
        return self.model_copy(update={"run_number": run_number})

    def with_include_run_metadata(self, include: bool = True) -> Query:
        return self.model_copy(update={"include_run_metadata": include})

    def with_top_k(self, k: int) -> Query:
        return self.model_copy(update={"top_k": k})

    def with_max_hops(self, hops: int) -> Query:
        return self.model_copy(update={"max_hops": hops})

    def with_min_score(self, score: float) -> Query:
        return self.model_copy(update={"min_score": score})

    def with_node_types(self, *node_types: str) -> Query:
        return self.model_copy(update={"node_types": list(node_types)})

    def with_mission(self, mission_id: str) -> Query:
        return self.model_copy(update={"mission_id": mission_id})

    def with_weights(self, vector: float, graph: float) -> Query:
        return self.model_copy(update={"vector_weight": vector, "graph_weight": graph})

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @property
    def scope(self) -> MissionScope:
        """Parsed scope; raises InvalidScopeError for unknown literals."""
        return MissionScope.parse(self.mission_scope)

    def check_scope(self) -> None:
        """Raise InvalidScopeError if the scope settings are malformed."""
        scope = self.scope
        if scope is MissionScope.SAME_MISSION and not self.mission_name.strip():
            msg = "mission_name is required when mission_scope is same_mission"
            raise InvalidScopeError(msg)
        if isinstance(self.run_number, bool):
            msg = f"run_number must be an integer, got {self.run_number}"
            raise InvalidScopeError(msg)
        if self.run_number is not None and self.run_number < 1:
            msg = f"run_number must be greater than 0, got {self.run_number}"
            raise InvalidScopeError(msg)

    def check(self) -> None:
        """Raise InvalidScopeError or InvalidQueryError if the query is malformed."""
        self.check_scope()

        has_text = self.text != ""
        has_embedding = len(self.embedding) > 0
        if has_text and has_embedding:
            msg = "query must have either text or embedding, not both"
            raise InvalidQueryError(msg)
        if not has_text and not has_embedding and not self.node_types:
            msg = "query must have either text, embedding, or node_types"
            raise InvalidQueryError(msg)
        if self.top_k <= 0:
            msg = f"top_k must be greater than 0, got {self.top_k}"
            raise InvalidQueryError(msg)
        if self.max_hops < 0:
            msg = f"max_hops must be non-negative, got {self.max_hops}"
            raise InvalidQueryError(msg)
        if not 0.0 <= self.min_score <= 1.0:
            msg = f"min_score must be between 0.0 and 1.0, got {self.min_score}"
            raise InvalidQueryError(msg)
        if self.vector_weight < 0.0:
            msg = f"vector_weight must be non-negative, got {self.vector_weight}"
            raise InvalidQueryError(msg)
        if self.graph_weight < 0.0:
            msg = f"graph_weight must be non-negative, got {self.graph_weight}"
            raise InvalidQueryError(msg)
        total = self.vector_weight + self.graph_weight
        if abs(total - 1.0) > _WEIGHT_EPSILON:
            msg = f"vector_weight + graph_weight must equal 1.0, got {total}"
            raise InvalidQueryError(msg)

    def scope_filter(self) -> dict[str, Any]:
        """Filter fields the query layer applies to bound the read."""
        scope = self.scope
        result: dict[str, Any] = {
            "mission_scope": scope.value,
            "include_run_metadata": self.include_run_metadata,
        }
        if self.mission_name:
            result["mission_name"] = self.mission_name
        if self.run_number is not None:
            result["run_number"] = self.run_number
        return result
