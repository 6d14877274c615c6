"""Insight tables and summary cards derived from the feature tree."""
from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Optional, Sequence, Union

from featuredash.dependencies import (
    build_dependency_map,
    build_name_to_path_map,
    feature_dependency_alerts,
    unique_dependency_count,
)
from featuredash.feature_tree import flatten_features, is_owner_inherited, resolve_owner
from featuredash.formatting import format_feature_name
from featuredash.models import (
    UNKNOWN_OWNER,
    Feature,
    InsightsSummary,
    LargestFeature,
    MetaList,
    OwnerStats,
    SortDirection,
    meta_entries,
)
from featuredash.observability import record_query, start_span
from featuredash.table_filter import use_table_filter
from featuredash.table_sort import sort_items

logger = logging.getLogger("featuredash.insights")

FEATURE_SEARCH_FIELDS = ("name", "owner", "path", "description")
OWNER_SEARCH_FIELDS = ("owner",)


def _count_by_type(feature: Feature, commit_type: str) -> int:
    if feature.stats is None:
        return 0
    return feature.stats.commits.count_by_type.get(commit_type, 0)


def _meta_row(feature: Feature) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for entry in meta_entries(feature):
        if isinstance(entry, MetaList):
            row[entry.key] = [dict(item) for item in entry.entries]
        else:
            row[entry.key] = entry.value
    return row


def actual_lines(feature: Feature) -> int:
    """Own line count minus what direct children already account for."""
    lines = (feature.stats.lines_count if feature.stats else None) or 0
    children_lines = sum((child.stats.lines_count if child.stats else None) or 0 for child in feature.features)
    return lines - children_lines


def feature_rows(features: Iterable[Feature]) -> list[dict[str, Any]]:
    """One flat row per feature, sorted by name, for the features insight table."""
    forest = list(features)
    dependency_map = build_dependency_map(forest)
    name_to_path = build_name_to_path_map(forest)

    rows: list[dict[str, Any]] = []
    for feature in sorted(flatten_features(forest), key=lambda item: item.name.lower()):
        stats = feature.stats
        commits = stats.commits if stats else None
        rows.append(
            {
                "name": feature.name,
                "path": feature.path,
                "owner": resolve_owner(feature),
                "is_owner_inherited": is_owner_inherited(feature),
                "description": feature.description,
                "first_commit_date": commits.first_commit_date if commits else None,
                "last_commit_date": commits.last_commit_date if commits else None,
                "files": (stats.files_count if stats else None) or 0,
                "lines": (stats.lines_count if stats else None) or 0,
                "todos": (stats.todos_count if stats else None) or 0,
                "total_commits": commits.total_commits if commits else 0,
                "feat": _count_by_type(feature, "feat"),
                "fix": _count_by_type(feature, "fix"),
                "refactor": _count_by_type(feature, "refactor"),
                "dependencies": unique_dependency_count(feature),
                "alerts": [
                    alert.value
                    for alert in feature_dependency_alerts(feature, forest, dependency_map, name_to_path)
                ],
                "stats": stats.model_dump() if stats else None,
                "meta": _meta_row(feature),
            }
        )
    return rows


def owner_stats(features: Iterable[Feature]) -> list[OwnerStats]:
    """Aggregate features per resolved owner, most active owners first."""
    by_owner: dict[str, OwnerStats] = {}
    for feature in flatten_features(features):
        owner = resolve_owner(feature)
        entry = by_owner.get(owner)
        if entry is None:
            entry = OwnerStats(owner=owner)
            by_owner[owner] = entry

        stats = feature.stats
        entry.featuresCount += 1
        entry.totalFiles += (stats.files_count if stats else None) or 0
        entry.totalLines += (stats.lines_count if stats else None) or 0
        entry.totalCommits += stats.commits.total_commits if stats else 0
        entry.totalFixes += _count_by_type(feature, "fix")
        entry.totalRefactors += _count_by_type(feature, "refactor")
        entry.features.append(feature.path)

    return sorted(by_owner.values(), key=lambda entry: entry.totalCommits, reverse=True)


def insights_summary(features: Iterable[Feature]) -> InsightsSummary:
    all_features = flatten_features(features)
    if not all_features:
        return InsightsSummary()

    largest = all_features[0]
    for feature in all_features[1:]:
        if actual_lines(largest) <= actual_lines(feature):
            largest = feature

    owners = {resolve_owner(feature) for feature in all_features}
    return InsightsSummary(
        totalFeatures=len(all_features),
        totalOwners=len(owners),
        largestFeature=LargestFeature(
            name=format_feature_name(largest.name),
            path=largest.path,
            lines=largest.stats.lines_count if largest.stats else None,
        ),
        featuresWithoutOwners=sum(1 for feature in all_features if resolve_owner(feature) == UNKNOWN_OWNER),
        totalTodos=sum((feature.stats.todos_count if feature.stats else None) or 0 for feature in all_features),
    )


def select_rows(
    rows: Sequence[Any],
    *,
    table: str,
    query: str = "",
    searchable_fields: Optional[Sequence[str]] = None,
    sort: Optional[str] = None,
    direction: Union[SortDirection, str] = SortDirection.ASC,
) -> list[Any]:
    """Apply a smart query and an optional sort to insight rows."""
    direction = SortDirection(direction)
    started = time.perf_counter()
    with start_span("insights.select_rows", {"table": table, "query": query, "sort": sort or ""}):
        table_filter = use_table_filter(rows, searchable_fields, query)
        selected = table_filter.filtered_data
        if sort:
            selected = sort_items(selected, sort, direction)
    duration_ms = (time.perf_counter() - started) * 1000.0
    record_query(table, len(rows), len(selected), duration_ms)
    logger.debug("Query %r on %s kept %d of %d rows", query, table, len(selected), len(rows))
    return list(selected)
