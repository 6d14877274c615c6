"""Insights API router: feature and ownership tables, summary cards."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from featuredash.feature_store import feature_store
from featuredash.insights import (
    FEATURE_SEARCH_FIELDS,
    OWNER_SEARCH_FIELDS,
    feature_rows,
    insights_summary,
    owner_stats,
    select_rows,
)
from featuredash.models import InsightsSummary, SortDirection
from featuredash.smart_query import extract_fields

insights_router = APIRouter(prefix="/api/insights", tags=["insights"])


def _parse_direction(direction: str) -> SortDirection:
    try:
        return SortDirection((direction or "asc").strip().lower())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid sort direction: {direction}") from exc


@insights_router.get("/features")
def get_feature_insights(
    q: str = Query("", description="Smart query, e.g. owner:john AND lines:>1000"),
    sort: str = Query("", description="Dot-path of the sort field"),
    direction: str = Query("asc", description="Sort order asc|desc"),
) -> list[dict[str, Any]]:
    sort_direction = _parse_direction(direction)
    rows = feature_rows(feature_store.get_features())
    return select_rows(
        rows,
        table="features",
        query=q,
        searchable_fields=FEATURE_SEARCH_FIELDS,
        sort=sort or None,
        direction=sort_direction,
    )


@insights_router.get("/owners")
def get_owner_insights(
    q: str = Query("", description="Smart query, e.g. totalCommits:>10"),
    sort: str = Query("", description="Dot-path of the sort field"),
    direction: str = Query("asc", description="Sort order asc|desc"),
) -> list[dict[str, Any]]:
    sort_direction = _parse_direction(direction)
    rows = [entry.model_dump() for entry in owner_stats(feature_store.get_features())]
    return select_rows(
        rows,
        table="owners",
        query=q,
        searchable_fields=OWNER_SEARCH_FIELDS,
        sort=sort or None,
        direction=sort_direction,
    )


@insights_router.get("/summary", response_model=InsightsSummary)
def get_insights_summary():
    return insights_summary(feature_store.get_features())


@insights_router.get("/fields")
def get_query_fields(max_depth: int = Query(2, ge=1, le=5)) -> list[str]:
    """Fields available to the smart query on the features table."""
    return extract_fields(feature_rows(feature_store.get_features()), max_depth=max_depth)
