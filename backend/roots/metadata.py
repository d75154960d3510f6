"""
Link Preview Metadata
Fetches title, description, images and favicons for third-party pages
through a chain of read-through proxies
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote, urljoin

import httpx
from bs4 import BeautifulSoup

import config
from roots.models import LinkMetadata
from roots.parser import is_http_url


logger = logging.getLogger(__name__)

ICON_RELS = {"icon", "apple-touch-icon", "apple-touch-icon-precomposed", "mask-icon"}
MAX_PAGE_IMAGES = 10


def proxy_request_url(template: str, url: str) -> str:
    """Wrap the target url in a proxy endpoint"""
    return template.format(url=quote(url, safe=""))


def _meta_content(soup: BeautifulSoup, *keys: str) -> list[str]:
    values = []
    for key in keys:
        for attr in ("property", "name"):
            for tag in soup.find_all("meta", attrs={attr: key}):
                content = tag.get("content")
                if content and content.strip():
                    values.append(content.strip())
    return values


def _absolute(base_url: str, candidates: list[str]) -> list[str]:
    urls = []
    for candidate in candidates:
        url = urljoin(base_url, candidate.strip())
        if is_http_url(url) and url not in urls:
            urls.append(url)
    return urls


def extract_metadata(html: str, url: str) -> LinkMetadata:
    """Scrape preview metadata out of a page's HTML"""
    soup = BeautifulSoup(html, "html.parser")

    titles = _meta_content(soup, "og:title", "twitter:title")
    if not titles and soup.title and soup.title.string:
        titles = [soup.title.string.strip()]

    descriptions = _meta_content(soup, "og:description", "description", "twitter:description")

    image_candidates = _meta_content(
        soup, "og:image", "og:image:url", "og:image:secure_url", "twitter:image", "twitter:image:src"
    )
    if not image_candidates:
        image_candidates = [img["src"] for img in soup.find_all("img", src=True)][:MAX_PAGE_IMAGES]

    favicon_candidates = []
    for link in soup.find_all("link", href=True):
        rels = {rel.lower() for rel in (link.get("rel") or [])}
        if rels & ICON_RELS:
            favicon_candidates.append(link["href"])
    if not favicon_candidates:
        favicon_candidates = ["/favicon.ico"]

    return LinkMetadata(
        url=url,
        title=titles[0] if titles else None,
        description=descriptions[0] if descriptions else None,
        images=_absolute(url, image_candidates),
        favicons=_absolute(url, favicon_candidates)
    )


async def _fetch_preview(
    client: httpx.AsyncClient,
    proxy_url: str,
    url: str
) -> Optional[LinkMetadata]:
    response = await client.get(proxy_url, headers={"User-Agent": config.PREVIEW_USER_AGENT})
    response.raise_for_status()

    content_type = response.headers.get("content-type", "")
    if content_type and "html" not in content_type.lower():
        return None

    return extract_metadata(response.text, url)


async def fetch_metadata(
    url: str,
    *,
    proxies: list[str] = None,
    timeout: float = config.PREVIEW_TIMEOUT,
    client: Optional[httpx.AsyncClient] = None
) -> Optional[LinkMetadata]:
    """
    Fetch link preview metadata for url, trying each proxy in order.

    Each attempt is bounded by `timeout` seconds. The first attempt that
    yields a page title wins. Returns None when every proxy fails, which
    callers should treat as a normal outcome.
    """
    if not is_http_url(url):
        return None

    proxies = config.PREVIEW_PROXIES if proxies is None else proxies
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(follow_redirects=True)

    try:
        for template in proxies:
            proxy_url = proxy_request_url(template, url)
            try:
                metadata = await asyncio.wait_for(_fetch_preview(client, proxy_url, url), timeout)
            except asyncio.TimeoutError:
                logger.warning("Link preview timed out for %s via %s", url, template)
                continue
            except Exception as e:
                logger.warning("Link preview attempt failed for %s via %s: %s", url, template, e)
                continue

            if metadata is not None and metadata.title is not None:
                return metadata
            logger.warning("Link preview for %s via %s had no title", url, template)
    finally:
        if owns_client:
            await client.aclose()

    return None
