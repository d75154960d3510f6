"""
Result Cards
Chooses the image and favicon shown for each record, enriching cards with
link previews in the background
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Collection, Optional
from urllib.parse import urlparse

import config
from roots.metadata import fetch_metadata
from roots.models import LinkMetadata, Record
from roots.parser import clean_url, is_http_url


logger = logging.getLogger(__name__)

MetadataFetcher = Callable[[str], Awaitable[Optional[LinkMetadata]]]


def choose_image(
    metadata: Optional[LinkMetadata],
    record: Record,
    broken: Collection[str] = ()
) -> str:
    """Live preview image, then the model's thumbnail, then the placeholder"""
    if metadata is not None:
        for image in metadata.images:
            if is_http_url(image) and image.strip() not in broken:
                return image.strip()
    thumbnail = clean_url(record.thumbnail_url)
    if thumbnail and thumbnail not in broken:
        return thumbnail
    return config.PLACEHOLDER_IMAGE


def favicon_url(metadata: Optional[LinkMetadata], url: str) -> Optional[str]:
    """Preview favicon, else one synthesized from the url's host"""
    if metadata is not None:
        for favicon in metadata.favicons:
            if is_http_url(favicon):
                return favicon.strip()
    cleaned = clean_url(url)
    if not cleaned:
        return None
    host = urlparse(cleaned).hostname
    if not host:
        return None
    return config.FAVICON_SERVICE_URL.format(host=host)


@dataclass
class Card:
    """A record as displayed, with its current image and favicon"""
    record: Record
    image_url: str
    favicon_url: Optional[str] = None
    metadata: Optional[LinkMetadata] = None
    broken_images: set[str] = field(default_factory=set)

    @classmethod
    def for_record(cls, record: Record) -> "Card":
        # Rendered eagerly, before any preview is fetched
        return cls(
            record=record,
            image_url=choose_image(None, record),
            favicon_url=favicon_url(None, record.link)
        )

    @property
    def url(self) -> str:
        return self.record.link

    def apply_metadata(self, metadata: Optional[LinkMetadata]) -> None:
        self.metadata = metadata
        self.image_url = choose_image(metadata, self.record, self.broken_images)
        self.favicon_url = favicon_url(metadata, self.url)

    def mark_image_broken(self) -> None:
        """
        The displayed image failed to load; show the placeholder instead.
        Only that url is remembered as broken, so a preview image arriving
        later still replaces the placeholder.
        """
        if self.image_url != config.PLACEHOLDER_IMAGE:
            self.broken_images.add(self.image_url)
        self.image_url = config.PLACEHOLDER_IMAGE

    def to_dict(self) -> dict:
        return {
            "record": self.record.to_dict(),
            "url": self.url,
            "image_url": self.image_url,
            "favicon_url": self.favicon_url,
            "metadata": self.metadata.to_dict() if self.metadata else None
        }


class CardHandle:
    """
    Background preview fetch tied to one card's lifetime.

    Disposing the handle does not cancel the network call; the result is
    simply dropped when it arrives.
    """

    def __init__(
        self,
        card: Card,
        fetcher: MetadataFetcher = fetch_metadata,
        on_update: Optional[Callable[[Card], None]] = None
    ):
        self.card = card
        self.fetcher = fetcher
        self.on_update = on_update
        self.disposed = False
        self.task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        if self.task is None:
            self.task = asyncio.create_task(self._enrich())
        return self.task

    def dispose(self) -> None:
        self.disposed = True

    async def _enrich(self) -> Optional[LinkMetadata]:
        metadata = None
        if self.card.url:
            try:
                metadata = await self.fetcher(self.card.url)
            except Exception as e:
                logger.warning("Preview fetch failed for %s: %s", self.card.url, e)

        if self.disposed:
            return None

        self.card.apply_metadata(metadata)
        if self.on_update is not None:
            self.on_update(self.card)
        return metadata


async def enrich_cards(
    records: list[Record],
    fetcher: MetadataFetcher = fetch_metadata
) -> list[Card]:
    """Build cards for records and fetch their previews concurrently"""
    cards = [Card.for_record(record) for record in records]
    handles = [CardHandle(card, fetcher) for card in cards]
    await asyncio.gather(*(handle.start() for handle in handles))
    return cards
