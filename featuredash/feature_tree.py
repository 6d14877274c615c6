"""Feature tree indexing and owner inheritance."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from featuredash.models import UNKNOWN_OWNER, Feature

logger = logging.getLogger("featuredash.tree")


def attach_parents(features: Iterable[Feature], parent: Optional[Feature] = None) -> list[Feature]:
    """Return a copy of the forest with every node's ``parent`` pointing at its container.

    The input models are left untouched; children lists are rebuilt on the copies.
    """
    attached: list[Feature] = []
    for feature in features:
        node = feature.model_copy()
        node._parent = parent
        node.features = attach_parents(feature.features, node)
        attached.append(node)
    return attached


def owner_is_set(owner: Optional[str]) -> bool:
    return bool(owner) and owner != UNKNOWN_OWNER


def resolve_owner(feature: Feature) -> str:
    """Nearest explicit owner walking up the parent chain, else ``"Unknown"``."""
    if owner_is_set(feature.owner):
        return feature.owner
    if feature.parent is not None:
        return resolve_owner(feature.parent)
    return UNKNOWN_OWNER


def is_owner_inherited(feature: Feature) -> bool:
    resolved = resolve_owner(feature)
    return resolved != UNKNOWN_OWNER and resolved != feature.owner


def flatten_features(features: Iterable[Feature]) -> list[Feature]:
    flattened: list[Feature] = []

    def _walk(items: Iterable[Feature]) -> None:
        for item in items:
            flattened.append(item)
            if item.features:
                _walk(item.features)

    _walk(features)
    return flattened


class FeatureTreeIndex:
    """Path-keyed view over a feature forest.

    Parents are stored as path keys, so lookups never depend on the
    ``parent`` attribute of the models themselves. Duplicate paths are not
    rejected: the node visited last wins.
    """

    def __init__(self, features: Iterable[Feature]):
        self._roots: list[Feature] = list(features)
        self._by_path: dict[str, Feature] = {}
        self._parent_paths: dict[str, Optional[str]] = {}
        self._index(self._roots, None)

    def _index(self, features: Iterable[Feature], parent_path: Optional[str]) -> None:
        for feature in features:
            if feature.path in self._by_path:
                logger.warning("Duplicate feature path %s; keeping the last occurrence", feature.path)
            self._by_path[feature.path] = feature
            self._parent_paths[feature.path] = parent_path
            self._index(feature.features, feature.path)

    @property
    def roots(self) -> list[Feature]:
        return list(self._roots)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def __len__(self) -> int:
        return len(self._by_path)

    def get(self, path: str) -> Optional[Feature]:
        return self._by_path.get(path)

    def parent_of(self, path: str) -> Optional[Feature]:
        parent_path = self._parent_paths.get(path)
        if parent_path is None:
            return None
        return self._by_path.get(parent_path)

    def ancestors(self, path: str) -> list[Feature]:
        """Ancestors of ``path`` ordered from the root down to the direct parent."""
        chain: list[Feature] = []
        seen: set[str] = {path}
        parent_path = self._parent_paths.get(path)
        while parent_path is not None and parent_path not in seen:
            seen.add(parent_path)
            parent = self._by_path.get(parent_path)
            if parent is None:
                break
            chain.append(parent)
            parent_path = self._parent_paths.get(parent_path)
        chain.reverse()
        return chain

    def resolve_owner(self, path: str) -> str:
        feature = self._by_path.get(path)
        if feature is None:
            return UNKNOWN_OWNER
        if owner_is_set(feature.owner):
            return feature.owner
        for ancestor in reversed(self.ancestors(path)):
            if owner_is_set(ancestor.owner):
                return ancestor.owner
        return UNKNOWN_OWNER

    def flatten(self) -> list[Feature]:
        return flatten_features(self._roots)
