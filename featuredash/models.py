"""Pydantic models matching the scanner's features.json document."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

UNKNOWN_OWNER = "Unknown"


# ── Feature-related models ─────────────────────────────────────────

class Change(BaseModel):
    title: str = ""
    author_name: str = ""
    author_email: str = ""
    description: str = ""
    date: str = ""
    hash: str = ""


class CommitStats(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_commits: int = 0
    authors_count: dict[str, int] = Field(default_factory=dict)
    count_by_type: dict[str, int] = Field(default_factory=dict)
    first_commit_date: Optional[str] = None
    last_commit_date: Optional[str] = None


class CoverageStats(BaseModel):
    model_config = ConfigDict(extra="allow")

    lines_covered: int = 0
    lines_total: int = 0
    line_coverage_percent: float = 0.0
    branches_covered: Optional[int] = None
    branches_total: Optional[int] = None
    branch_coverage_percent: Optional[float] = None


class Stats(BaseModel):
    files_count: Optional[int] = None
    lines_count: Optional[int] = None
    todos_count: Optional[int] = None
    commits: CommitStats = Field(default_factory=CommitStats)
    coverage: Optional[CoverageStats] = None


class DependencyType(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"


class Dependency(BaseModel):
    """One static reference from a file of this feature to another feature's file."""

    model_config = ConfigDict(frozen=True)

    sourceFilename: str = ""
    targetFilename: str = ""
    line: int = 0  # 1-based
    content: str = ""
    featurePath: str = ""  # name of the other feature
    feature: str = ""
    type: DependencyType = DependencyType.SIBLING

    @property
    def target_name(self) -> str:
        return self.featurePath or self.feature


MetaValue = Union[str, int, float, bool, None, list[dict[str, str]]]


class Feature(BaseModel):
    name: str
    path: str
    owner: str = ""
    is_owner_inherited: bool = False
    description: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)
    changes: list[Change] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    stats: Optional[Stats] = None
    dependencies: list[Dependency] = Field(default_factory=list)
    features: list[Feature] = Field(default_factory=list)

    # Non-owning back-reference, assigned by feature_tree.attach_parents.
    _parent: Optional[Feature] = PrivateAttr(default=None)

    @property
    def parent(self) -> Optional[Feature]:
        return self._parent


@dataclass(frozen=True)
class MetaScalar:
    key: str
    value: Union[str, int, float, bool, None]


@dataclass(frozen=True)
class MetaList:
    key: str
    entries: tuple[dict[str, str], ...]


def meta_entries(feature: Feature) -> Iterator[Union[MetaScalar, MetaList]]:
    """Yield a feature's metadata as tagged scalar/list variants.

    List values keep only their mapping entries, stringified, so consumers can
    rely on ``dict[str, str]`` rows (flags, experiments, toggles).
    """
    for key, value in feature.meta.items():
        if isinstance(value, list):
            rows = tuple(
                {str(k): "" if v is None else str(v) for k, v in entry.items()}
                for entry in value
                if isinstance(entry, dict)
            )
            yield MetaList(key=key, entries=rows)
        elif isinstance(value, dict):
            continue
        else:
            yield MetaScalar(key=key, value=value)


# ── Dependency view models ─────────────────────────────────────────

class DependencyAlert(str, Enum):
    CIRCULAR = "Circular Dependency"
    TIGHT = "Tight Dependency"


class GroupedDependency(BaseModel):
    feature: str
    type: DependencyType
    count: int = 0
    items: list[Dependency] = Field(default_factory=list)


class DependencyGroupView(BaseModel):
    feature: str
    type: DependencyType
    count: int = 0
    alerts: list[DependencyAlert] = Field(default_factory=list)
    items: list[Dependency] = Field(default_factory=list)


# ── Smart query models ─────────────────────────────────────────────

class ComparisonOperator(str, Enum):
    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class FilterCondition(BaseModel):
    field: Optional[str] = None  # dot-path; None searches all configured fields
    operator: ComparisonOperator = ComparisonOperator.EQ
    value: Union[int, float, str] = ""
    raw: str = ""


class QueryGroup(BaseModel):
    conditions: list[FilterCondition] = Field(default_factory=list)
    operator: LogicalOperator = LogicalOperator.AND


class ParsedQuery(BaseModel):
    groups: list[QueryGroup] = Field(default_factory=list)
    raw_query: str = ""


# ── Table sort models ──────────────────────────────────────────────

class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortConfig(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC


# ── Insights models ────────────────────────────────────────────────

class OwnerStats(BaseModel):
    owner: str
    featuresCount: int = 0
    totalFiles: int = 0
    totalLines: int = 0
    totalCommits: int = 0
    totalFixes: int = 0
    totalRefactors: int = 0
    features: list[str] = Field(default_factory=list)


class LargestFeature(BaseModel):
    name: str = ""
    path: str = ""
    lines: Optional[int] = None


class InsightsSummary(BaseModel):
    totalFeatures: int = 0
    totalOwners: int = 0
    largestFeature: Optional[LargestFeature] = None
    featuresWithoutOwners: int = 0
    totalTodos: int = 0


class Metadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str = ""
    repository: Optional[str] = None
