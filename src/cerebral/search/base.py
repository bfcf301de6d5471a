"""Web-search client protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models.research import SearchResult


@runtime_checkable
class SearchClient(Protocol):
    """Protocol that all web-search clients must implement.

    ``search`` may return an empty list or raise; callers treat both as
    "no research available".
    """

    name: str

    async def search(self, query: str, count: int = 5) -> list[SearchResult]: ...
