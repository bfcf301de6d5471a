"""Web research data models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SearchResult(BaseModel):
    title: str
    url: str
    description: str


class ResearchData(BaseModel):
    """Findings from one research pass.

    ``results`` holds the single result shown to the user, ``all_results``
    the metadata for everything fetched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    query: str
    results: list[SearchResult]
    all_results: list[SearchResult] = []
    total_available: int = 0
    summary: str
