"""
Source Deduplication
Turns grounding citations into a stable, de-duplicated source list
"""

from typing import Iterable, Optional

from roots.models import Source


DEFAULT_SOURCE_TITLE = "Recipe Source"


def citations_from_chunks(chunks: Optional[Iterable]) -> list[dict]:
    """Pull {title, uri} pairs out of grounding chunks, skipping non-web ones"""
    citations = []
    for chunk in chunks or []:
        web = chunk.get("web") if isinstance(chunk, dict) else getattr(chunk, "web", None)
        if web is None:
            continue
        if isinstance(web, dict):
            uri, title = web.get("uri"), web.get("title")
        else:
            uri, title = getattr(web, "uri", None), getattr(web, "title", None)
        if uri:
            citations.append({"title": title, "uri": uri})
    return citations


def dedupe_sources(
    citations: Iterable,
    fallback_title: str = DEFAULT_SOURCE_TITLE
) -> list[Source]:
    """
    Keep the first citation for each uri, in order of first appearance.

    Accepts dicts or Source objects; a missing title becomes fallback_title.
    """
    seen = set()
    sources = []

    for citation in citations or []:
        if isinstance(citation, Source):
            uri, title = citation.uri, citation.title
        else:
            uri, title = citation.get("uri"), citation.get("title")

        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(Source(title=title or fallback_title, uri=uri))

    return sources
