"""
Structured Output Schemas
Pydantic models for validating JSON record payloads and the matching
response schemas handed to providers that support constrained output
"""

from typing import Optional

from google.genai import types
from pydantic import BaseModel, ConfigDict, field_validator


def _split_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(";")
    elif not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item).strip() for item in value if str(item).strip()]


def _as_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_url(value) -> Optional[str]:
    # Anything but a string is dropped; the record itself is kept
    if isinstance(value, str):
        return value
    return None


class RecipePayload(BaseModel):
    """A recipe as it appears in a JSON response"""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    heritage: str = ""
    summary: str = ""
    history: str = ""
    ingredients: list[str] = []
    appliances: list[str] = []
    time: str = ""
    source_url: str = ""
    thumbnail_url: Optional[str] = None

    @field_validator("ingredients", "appliances", mode="before")
    @classmethod
    def split_lists(cls, value):
        return _split_list(value)

    @field_validator("name", "heritage", "summary", "history", "time", "source_url", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _as_text(value)

    @field_validator("thumbnail_url", mode="before")
    @classmethod
    def thumbnail_text(cls, value):
        return _as_url(value)


class BusinessPayload(BaseModel):
    """A business as it appears in a JSON response"""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    heritage: str = ""
    summary: str = ""
    significance: str = ""
    address: str = ""
    website: str = ""
    thumbnail_url: Optional[str] = None
    parking_spots: Optional[str] = None
    wheelchair_accessible: Optional[str] = None
    automatic_doors: Optional[str] = None

    @field_validator("name", "heritage", "summary", "significance", "address", "website", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _as_text(value)

    @field_validator("thumbnail_url", mode="before")
    @classmethod
    def thumbnail_text(cls, value):
        return _as_url(value)

    @field_validator("parking_spots", "wheelchair_accessible", "automatic_doors", mode="before")
    @classmethod
    def optional_text(cls, value):
        if value is None:
            return None
        if isinstance(value, bool):
            return "Yes" if value else "No"
        return str(value).strip() or None


def _string() -> types.Schema:
    return types.Schema(type=types.Type.STRING)


def _string_list() -> types.Schema:
    return types.Schema(type=types.Type.ARRAY, items=_string())


def recipe_list_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.ARRAY,
        items=types.Schema(
            type=types.Type.OBJECT,
            properties={
                "name": _string(),
                "heritage": _string(),
                "summary": _string(),
                "history": _string(),
                "ingredients": _string_list(),
                "appliances": _string_list(),
                "time": _string(),
                "source_url": _string(),
                "thumbnail_url": _string(),
            },
            required=["name", "heritage", "summary", "source_url"]
        )
    )


def business_list_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.ARRAY,
        items=types.Schema(
            type=types.Type.OBJECT,
            properties={
                "name": _string(),
                "heritage": _string(),
                "summary": _string(),
                "significance": _string(),
                "address": _string(),
                "website": _string(),
                "thumbnail_url": _string(),
                "parking_spots": _string(),
                "wheelchair_accessible": _string(),
                "automatic_doors": _string(),
            },
            required=["name", "heritage", "summary", "address"]
        )
    )
