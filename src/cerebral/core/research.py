"""Research trigger and research-result shaping.

Three-step workflow:
1. "build X"                      -> no research, agents build directly
2. "what is the best way to X?"   -> research only, no model call
3. follow-up with Apply Research  -> agents build using the findings
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models.research import ResearchData, SearchResult
from ..search.base import SearchClient

logger = logging.getLogger(__name__)

RESEARCH_PATTERNS: tuple[str, ...] = (
    "what is the best",
    "what's the best",
    "what are the best",
    "what are best practices",
    "what is best practice",
    "how should i",
    "how should we",
    "what is recommended",
    "what's recommended",
    "which is better",
    "which approach",
    "what approach",
    "compare",
    "research",
    "show me best",
    "find best",
    "lookup",
    "search for",
)

DEFAULT_RESULT_COUNT = 5
DISPLAY_RESULT_COUNT = 1


def should_research(user_text: str) -> bool:
    """True when the request reads as a question about approach."""
    lowered = (user_text or "").lower()
    return any(pattern in lowered for pattern in RESEARCH_PATTERNS)


def _clean_result(result: SearchResult) -> SearchResult:
    return SearchResult(
        title=result.title or "Untitled",
        url=result.url or "",
        description=result.description or "",
    )


def build_research_data(query: str, results: list[SearchResult]) -> Optional[ResearchData]:
    """Shape raw search hits into ResearchData, or None if there are none."""
    all_results = [_clean_result(r) for r in results[:DEFAULT_RESULT_COUNT]]
    if not all_results:
        return None

    top = all_results[0]
    return ResearchData(
        query=query,
        results=all_results[:DISPLAY_RESULT_COUNT],
        all_results=all_results,
        total_available=len(all_results),
        summary=f"{top.title}\n{top.description}\nSource: {top.url}",
    )


async def perform_research(
    client: SearchClient, query: str, count: int = DEFAULT_RESULT_COUNT
) -> Optional[ResearchData]:
    """Run one search and shape the results.

    Client errors propagate; the orchestrator decides they are non-fatal.
    """
    logger.info("Researching: %r", query)
    results = await client.search(query, count)
    research = build_research_data(query, results)
    if research is None:
        logger.info("Research returned no results for %r", query)
    else:
        logger.info(
            "Research found %d results (showing top %d)",
            research.total_available,
            len(research.results),
        )
    return research


def research_only_message(research: ResearchData, transcript: str) -> str:
    top = research.results[0]
    return (
        "Research Complete!\n\n"
        f'I found {research.total_available} relevant sources for: "{transcript}"\n\n'
        f"Top Result:\n{top.title}\n{top.description}\n\n"
        'To implement this request, enable "Apply Research" and send another message.'
    )
