"""Canned search results for demos and environments without a search key."""

from __future__ import annotations

import logging

from ..models.research import SearchResult

logger = logging.getLogger(__name__)

MOCK_RESULTS: list[SearchResult] = [
    SearchResult(
        title="Best Practices for Modern Authentication",
        url="https://auth0.com/docs/best-practices",
        description=(
            "Comprehensive guide covering OAuth 2.0, OpenID Connect, JWT tokens, "
            "and secure session management for modern applications."
        ),
    ),
    SearchResult(
        title="OAuth 2.0 Implementation Guide - MDN",
        url="https://developer.mozilla.org/en-US/docs/Web/Security/OAuth",
        description=(
            "Mozilla's complete walkthrough of implementing OAuth 2.0 authentication "
            "flows with code examples and security considerations."
        ),
    ),
    SearchResult(
        title="JWT Authentication Tutorial",
        url="https://jwt.io/introduction",
        description=(
            "Learn how to implement JSON Web Tokens for stateless authentication "
            "in web applications with best practices."
        ),
    ),
]


class MockSearchClient:
    name = "mock"

    async def search(self, query: str, count: int = 5) -> list[SearchResult]:
        logger.info("Using mock research data for %r", query)
        return list(MOCK_RESULTS[:count])
