"""Dependency graph, grouping and coupling alerts between features."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from featuredash.models import (
    Dependency,
    DependencyAlert,
    DependencyGroupView,
    Feature,
    GroupedDependency,
)

logger = logging.getLogger("featuredash.dependencies")

# Tight coupling policy: many references into a single file, or several
# references spread over many files.
TIGHT_SINGLE_FILE_MIN_COUNT = 5
TIGHT_MULTI_FILE_MIN_FILES = 3
TIGHT_MULTI_FILE_MIN_COUNT = 3


def _walk(features: Iterable[Feature]) -> Iterable[Feature]:
    for feature in features:
        yield feature
        if feature.features:
            yield from _walk(feature.features)


def build_name_to_path_map(features: Iterable[Feature]) -> dict[str, str]:
    name_to_path: dict[str, str] = {}
    for feature in _walk(features):
        name_to_path[feature.name] = feature.path
    return name_to_path


def build_dependency_map(features: Iterable[Feature]) -> dict[str, set[str]]:
    """Map each feature path to the set of feature paths it depends on.

    Dependencies reference their target by feature name; names that do not
    resolve to a known feature are dropped.
    """
    forest = list(features)
    name_to_path = build_name_to_path_map(forest)

    dependency_map: dict[str, set[str]] = {}
    for feature in _walk(forest):
        targets: set[str] = set()
        for dep in feature.dependencies:
            target_path = name_to_path.get(dep.target_name)
            if target_path is None:
                logger.debug("Unresolved dependency target %r from %s", dep.target_name, feature.path)
                continue
            targets.add(target_path)
        dependency_map[feature.path] = targets
    return dependency_map


def group_dependencies(dependencies: Iterable[Dependency]) -> list[GroupedDependency]:
    grouped: dict[tuple[str, str], GroupedDependency] = {}
    for dep in dependencies:
        key = (dep.target_name, dep.type.value)
        group = grouped.get(key)
        if group is None:
            group = GroupedDependency(feature=dep.target_name, type=dep.type)
            grouped[key] = group
        group.count += 1
        group.items.append(dep)
    return list(grouped.values())


def _is_tight(group: GroupedDependency) -> bool:
    file_count = len({item.targetFilename for item in group.items})
    if file_count == 1 and group.count > TIGHT_SINGLE_FILE_MIN_COUNT:
        return True
    return file_count >= TIGHT_MULTI_FILE_MIN_FILES and group.count > TIGHT_MULTI_FILE_MIN_COUNT


def detect_alerts(
    group: GroupedDependency,
    current_feature_path: str,
    dependency_map: dict[str, set[str]],
    name_to_path: dict[str, str],
) -> list[DependencyAlert]:
    """Coupling alerts for one dependency group.

    Circular only covers a direct pair: the target feature itself depends
    back on ``current_feature_path``.
    """
    alerts: list[DependencyAlert] = []

    target_path = name_to_path.get(group.feature)
    if target_path is not None and current_feature_path in dependency_map.get(target_path, set()):
        alerts.append(DependencyAlert.CIRCULAR)

    if _is_tight(group):
        alerts.append(DependencyAlert.TIGHT)

    return alerts


def unique_dependency_count(feature: Feature) -> int:
    return len({dep.target_name for dep in feature.dependencies})


def describe_dependencies(
    feature: Feature,
    all_features: Iterable[Feature],
    dependency_map: Optional[dict[str, set[str]]] = None,
    name_to_path: Optional[dict[str, str]] = None,
) -> list[DependencyGroupView]:
    """Grouped dependencies of ``feature`` with their alerts, for the dependency table.

    Callers walking many features pass prebuilt maps to avoid rebuilding them.
    """
    forest = list(all_features)
    if dependency_map is None:
        dependency_map = build_dependency_map(forest)
    if name_to_path is None:
        name_to_path = build_name_to_path_map(forest)
    return [
        DependencyGroupView(
            feature=group.feature,
            type=group.type,
            count=group.count,
            alerts=detect_alerts(group, feature.path, dependency_map, name_to_path),
            items=list(group.items),
        )
        for group in group_dependencies(feature.dependencies)
    ]


def feature_dependency_alerts(
    feature: Feature,
    all_features: Iterable[Feature],
    dependency_map: Optional[dict[str, set[str]]] = None,
    name_to_path: Optional[dict[str, str]] = None,
) -> list[DependencyAlert]:
    """Distinct alerts across all of a feature's dependency groups."""
    if not feature.dependencies:
        return []
    alerts: list[DependencyAlert] = []
    for view in describe_dependencies(feature, all_features, dependency_map, name_to_path):
        for alert in view.alerts:
            if alert not in alerts:
                alerts.append(alert)
    return alerts
