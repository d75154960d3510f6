"""
Record Data Model
Defines search criteria, parsed records, sources and link metadata
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _optional_text(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    return None if value is None else str(value)


def _text_list(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


class SearchMode(str, Enum):
    """Which kind of result a search asks for"""
    RECIPE = "recipe"
    BUSINESS = "business"


@dataclass(frozen=True)
class SearchCriteria:
    """User selection state for one search invocation"""
    ingredients: tuple[str, ...]
    appliances: tuple[str, ...] = ()
    cultures: tuple[str, ...] = ()
    max_time_minutes: int = 60
    zip_code: Optional[str] = None
    exclude_names: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        ingredients: list[str],
        appliances: list[str] = None,
        cultures: list[str] = None,
        max_time_minutes: int = 60,
        zip_code: Optional[str] = None,
        exclude_names: list[str] = None
    ) -> "SearchCriteria":
        """Build criteria from raw selections, dropping blanks and repeats"""
        return cls(
            ingredients=_unique(ingredients),
            appliances=_unique(appliances),
            cultures=_unique(cultures),
            max_time_minutes=max_time_minutes,
            zip_code=zip_code.strip() if zip_code else None,
            exclude_names=tuple(exclude_names or ())
        )

    def excluding(self, names: list[str]) -> "SearchCriteria":
        """Copy of these criteria with a new exclusion list"""
        return SearchCriteria(
            ingredients=self.ingredients,
            appliances=self.appliances,
            cultures=self.cultures,
            max_time_minutes=self.max_time_minutes,
            zip_code=self.zip_code,
            exclude_names=tuple(names)
        )

    def to_dict(self) -> dict:
        return {
            "ingredients": list(self.ingredients),
            "appliances": list(self.appliances),
            "cultures": list(self.cultures),
            "max_time_minutes": self.max_time_minutes,
            "zip_code": self.zip_code,
            "exclude_names": list(self.exclude_names)
        }


def _unique(values: Optional[list[str]]) -> tuple[str, ...]:
    # Selection order is kept; it is the order the prompt lists them in
    seen = []
    for value in values or ():
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


@dataclass
class RecipeRecord:
    """One heritage recipe returned by the model"""
    name: str
    heritage: str = ""
    summary: str = ""
    history: str = ""
    ingredients: list[str] = field(default_factory=list)
    appliances: list[str] = field(default_factory=list)
    time: str = ""
    source_url: str = ""
    thumbnail_url: Optional[str] = None

    @property
    def link(self) -> str:
        """Outbound URL used for link previews"""
        return self.source_url

    def to_dict(self) -> dict:
        return {
            "kind": SearchMode.RECIPE.value,
            "name": self.name,
            "heritage": self.heritage,
            "summary": self.summary,
            "history": self.history,
            "ingredients": self.ingredients,
            "appliances": self.appliances,
            "time": self.time,
            "source_url": self.source_url,
            "thumbnail_url": self.thumbnail_url
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecipeRecord":
        return cls(
            name=_text(data, "name"),
            heritage=_text(data, "heritage"),
            summary=_text(data, "summary"),
            history=_text(data, "history"),
            ingredients=_text_list(data, "ingredients"),
            appliances=_text_list(data, "appliances"),
            time=_text(data, "time"),
            source_url=_text(data, "source_url"),
            thumbnail_url=_optional_text(data, "thumbnail_url")
        )


@dataclass
class BusinessRecord:
    """One small heritage business near the user"""
    name: str
    heritage: str = ""
    summary: str = ""
    significance: str = ""
    address: str = ""
    website: str = ""
    thumbnail_url: Optional[str] = None
    parking_spots: Optional[str] = None
    wheelchair_accessible: Optional[str] = None
    automatic_doors: Optional[str] = None

    @property
    def link(self) -> str:
        """Outbound URL used for link previews"""
        return self.website

    def to_dict(self) -> dict:
        return {
            "kind": SearchMode.BUSINESS.value,
            "name": self.name,
            "heritage": self.heritage,
            "summary": self.summary,
            "significance": self.significance,
            "address": self.address,
            "website": self.website,
            "thumbnail_url": self.thumbnail_url,
            "parking_spots": self.parking_spots,
            "wheelchair_accessible": self.wheelchair_accessible,
            "automatic_doors": self.automatic_doors
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BusinessRecord":
        return cls(
            name=_text(data, "name"),
            heritage=_text(data, "heritage"),
            summary=_text(data, "summary"),
            significance=_text(data, "significance"),
            address=_text(data, "address"),
            website=_text(data, "website"),
            thumbnail_url=_optional_text(data, "thumbnail_url"),
            parking_spots=_optional_text(data, "parking_spots"),
            wheelchair_accessible=_optional_text(data, "wheelchair_accessible"),
            automatic_doors=_optional_text(data, "automatic_doors")
        )


Record = Union[RecipeRecord, BusinessRecord]


def record_from_dict(data: dict) -> Record:
    """Rebuild a record from its dict form, dispatching on its kind"""
    if data.get("kind") == SearchMode.BUSINESS.value:
        return BusinessRecord.from_dict(data)
    return RecipeRecord.from_dict(data)


@dataclass(frozen=True)
class Source:
    """Grounding citation; unique by uri"""
    title: str
    uri: str

    def to_dict(self) -> dict:
        return {"title": self.title, "uri": self.uri}


@dataclass
class LinkMetadata:
    """Page metadata scraped for a link preview"""
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    images: list[str] = field(default_factory=list)
    favicons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "images": self.images,
            "favicons": self.favicons
        }


@dataclass
class ResultBundle:
    """Records plus the de-duplicated sources that informed them"""
    records: list[Record] = field(default_factory=list)
    sources: list[Source] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.records

    def names(self) -> list[str]:
        return [record.name for record in self.records]

    def to_dict(self) -> dict:
        return {
            "records": [record.to_dict() for record in self.records],
            "sources": [source.to_dict() for source in self.sources]
        }
