"""Features API router."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from featuredash.dependencies import describe_dependencies
from featuredash.feature_store import feature_store
from featuredash.feature_tree import is_owner_inherited, resolve_owner
from featuredash.git_utils import build_commit_url
from featuredash.models import Change, DependencyGroupView, Feature

features_router = APIRouter(prefix="/api/features", tags=["features"])
logger = logging.getLogger("featuredash.features")


# ── Response models ─────────────────────────────────────────────────

class FeatureRef(BaseModel):
    name: str
    path: str


class ChangeLink(Change):
    commitUrl: Optional[str] = None  # None when metadata has no repository


class FeatureDetail(BaseModel):
    feature: Feature
    resolvedOwner: str
    isOwnerInherited: bool = False
    ancestors: list[FeatureRef] = Field(default_factory=list)  # root first, for breadcrumbs
    children: list[FeatureRef] = Field(default_factory=list)
    changes: list[ChangeLink] = Field(default_factory=list)


class FeatureDependencies(BaseModel):
    path: str
    groups: list[DependencyGroupView] = Field(default_factory=list)


def _get_feature(feature_path: str) -> Feature:
    feature = feature_store.get_index().get(feature_path)
    if feature is None:
        raise HTTPException(status_code=404, detail=f"Feature not found: {feature_path}")
    return feature


@features_router.get("", response_model=list[Feature])
def list_features():
    """Return the feature tree."""
    return feature_store.get_features()


# Registered before the catch-all detail route, whose path parameter would
# otherwise swallow the "/dependencies" suffix.
@features_router.get("/{feature_path:path}/dependencies", response_model=FeatureDependencies)
def get_feature_dependencies(feature_path: str):
    """Dependencies of one feature grouped by target and relation, with coupling alerts."""
    feature = _get_feature(feature_path)
    groups = describe_dependencies(feature, feature_store.get_features())
    flagged = sum(1 for group in groups if group.alerts)
    if flagged:
        logger.debug("Feature %s has %d dependency groups with alerts", feature_path, flagged)
    return FeatureDependencies(path=feature.path, groups=groups)


@features_router.get("/{feature_path:path}", response_model=FeatureDetail)
def get_feature(feature_path: str):
    """Return one feature with its resolved owner and position in the tree.

    Paths ending in ``/dependencies`` are answered by
    ``get_feature_dependencies`` for the parent path, so such a feature can
    only be read from the tree returned by ``GET /api/features``.
    """
    feature = _get_feature(feature_path)
    index = feature_store.get_index()
    metadata = feature_store.get_metadata()
    repository = metadata.repository if metadata else None
    return FeatureDetail(
        feature=feature,
        resolvedOwner=resolve_owner(feature),
        isOwnerInherited=is_owner_inherited(feature),
        ancestors=[FeatureRef(name=item.name, path=item.path) for item in index.ancestors(feature.path)],
        children=[FeatureRef(name=child.name, path=child.path) for child in feature.features],
        changes=[
            ChangeLink(**change.model_dump(), commitUrl=build_commit_url(repository, change.hash))
            for change in feature.changes
        ],
    )
