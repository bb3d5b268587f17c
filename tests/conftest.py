"""Pytest configuration helpers."""

import os
from typing import Any

import pytest

# Ensure required environment variables exist before importing application settings.
DEFAULT_ENV_VARS = {
    "PRISMIC_API_ENDPOINT": "https://lostcode.cdn.prismic.io/api/v2",
    "PRISMIC_DOCUMENT_TYPE": "template-post",
}

for var, value in DEFAULT_ENV_VARS.items():
    os.environ.setdefault(var, value)

from postfeed.models import QueryResponse, RawDocument  # noqa: E402


@pytest.fixture
def make_document():
    def _make(
        uid: str | None = "post",
        title: Any = None,
        content: Any = None,
        image_url: str | None = "https://images.prismic.io/lostcode/cover.png",
        tags: Any = None,
        last_publication_date: str = "2021-06-01T12:00:00+0000",
    ) -> RawDocument:
        if title is None:
            title = [{"type": "heading1", "text": f"Title of {uid}", "spans": []}]

        data: dict[str, Any] = {
            "title": title,
            "content": content if content is not None else [],
            "image": {"url": image_url} if image_url else {},
        }
        if tags is not None:
            data["tags"] = tags
        return RawDocument.model_validate(
            {
                "id": f"id-{uid}",
                "uid": uid,
                "type": "template-post",
                "last_publication_date": last_publication_date,
                "data": data,
            }
        )

    return _make


@pytest.fixture
def make_response(make_document):
    def _make(count: int, prefix: str = "post") -> QueryResponse:
        documents = [make_document(uid=f"{prefix}-{i}") for i in range(1, count + 1)]
        return QueryResponse(results=documents, results_size=count)

    return _make
