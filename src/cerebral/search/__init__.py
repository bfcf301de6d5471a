"""Web-search clients."""

from __future__ import annotations

import os

from .base import SearchClient


def get_search_client(config: dict) -> SearchClient:
    """Factory for the configured web-search client."""
    search_config = config.get("search", {})
    use_mock = search_config.get("mock") or os.environ.get("MOCK_BRAVE_SEARCH", "").lower() == "true"
    if use_mock:
        from .mock import MockSearchClient
        return MockSearchClient()

    provider_name = search_config.get("provider", "brave")
    if provider_name == "brave":
        from .brave import BraveSearchClient
        return BraveSearchClient(
            search_config.get("brave", {}),
            timeout=search_config.get("timeout_seconds", 15),
        )
    raise ValueError(f"Unknown search provider: {provider_name}")
