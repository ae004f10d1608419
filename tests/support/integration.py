"""
Helpers for tests that go through the HTTP layer.
"""
import json
from contextlib import contextmanager
from html.parser import HTMLParser
from typing import Any, Iterator

import httpx

from app.main import limiter


class _AppDivParser(HTMLParser):
    def __init__(self):
        super().__init__()
        self.data_page: str | None = None

    def handle_starttag(self, tag, attrs):
        attributes = dict(attrs)
        if tag == "div" and attributes.get("id") == "app" and self.data_page is None:
            self.data_page = attributes.get("data-page")


def inertia_params(response: httpx.Response) -> dict[str, Any] | None:
    """
    The page object the dashboard rendered into ``<div id="app" data-page>``.

    Returns None when the response has no such element or its data is not
    valid JSON.
    """
    parser = _AppDivParser()
    parser.feed(response.text)
    try:
        return json.loads(parser.data_page)
    except (TypeError, ValueError):
        return None


@contextmanager
def with_rate_limiting_enabled() -> Iterator[None]:
    """Switch the rate limiter on for the block, starting from empty counters."""
    previous = limiter.enabled
    limiter.enabled = True
    limiter.reset()
    try:
        yield
    finally:
        limiter.enabled = previous
        limiter.reset()
