"""
AI Response Parser
Extracts recipe and business records from model output, either the
delimiter-based text protocol or a schema-constrained JSON payload
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError

from roots.models import BusinessRecord, RecipeRecord, Record, SearchMode
from roots.schemas import BusinessPayload, RecipePayload


logger = logging.getLogger(__name__)


TEXT = "text"
LIST = "list"
URL = "url"

LIST_DELIMITER = ";"

_URL_SCHEME = re.compile(r"^https?://", re.IGNORECASE)
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class FieldSpec:
    """One line prefix and the record attribute it fills"""
    prefix: str
    attr: str
    kind: str = TEXT


@dataclass(frozen=True)
class RecordSpec:
    """Markers and field grammar for one record kind"""
    start_marker: str
    end_marker: str
    fields: tuple[FieldSpec, ...]
    factory: Callable[..., Record]
    payload: type[BaseModel]


RECIPE_SPEC = RecordSpec(
    start_marker="[RECIPE_START]",
    end_marker="[RECIPE_END]",
    fields=(
        FieldSpec("NAME:", "name"),
        FieldSpec("HERITAGE:", "heritage"),
        FieldSpec("SUMMARY:", "summary"),
        FieldSpec("HISTORY:", "history"),
        FieldSpec("INGREDIENTS_USED:", "ingredients", LIST),
        FieldSpec("APPLIANCES_USED:", "appliances", LIST),
        FieldSpec("TIME_ESTIMATE:", "time"),
        FieldSpec("SOURCE_URL:", "source_url"),
        FieldSpec("THUMBNAIL_URL:", "thumbnail_url", URL),
    ),
    factory=RecipeRecord,
    payload=RecipePayload,
)

BUSINESS_SPEC = RecordSpec(
    start_marker="[BUSINESS_START]",
    end_marker="[BUSINESS_END]",
    fields=(
        FieldSpec("NAME:", "name"),
        FieldSpec("HERITAGE:", "heritage"),
        FieldSpec("SUMMARY:", "summary"),
        FieldSpec("SIGNIFICANCE:", "significance"),
        FieldSpec("ADDRESS:", "address"),
        FieldSpec("WEBSITE:", "website"),
        FieldSpec("THUMBNAIL_URL:", "thumbnail_url", URL),
        FieldSpec("PARKING_SPOTS:", "parking_spots"),
        FieldSpec("WHEELCHAIR_ACCESSIBLE:", "wheelchair_accessible"),
        FieldSpec("AUTOMATIC_DOORS:", "automatic_doors"),
    ),
    factory=BusinessRecord,
    payload=BusinessPayload,
)

RECORD_SPECS = {
    SearchMode.RECIPE: RECIPE_SPEC,
    SearchMode.BUSINESS: BUSINESS_SPEC,
}


def clean_url(value: Optional[str]) -> Optional[str]:
    """
    Return value as an HTTP(S) URL, or None if it is not one.

    Parentheses are stripped first since the model sometimes wraps
    links Markdown-style.
    """
    if not isinstance(value, str):
        return None
    value = value.replace("(", "").replace(")", "").strip()
    if not _URL_SCHEME.match(value):
        return None
    return value


def is_http_url(value: Optional[str]) -> bool:
    """True if value, as given, is an HTTP(S) URL"""
    return isinstance(value, str) and bool(_URL_SCHEME.match(value.strip()))


def split_list(value: str) -> list[str]:
    """Split a semicolon-delimited value, dropping empty items"""
    return [item.strip() for item in value.split(LIST_DELIMITER) if item.strip()]


def _convert(raw: str, kind: str):
    if kind == LIST:
        return split_list(raw)
    if kind == URL:
        return clean_url(raw)
    return raw.strip()


def _read_fields(body: str, spec: RecordSpec) -> dict:
    values = {}
    for line in body.splitlines():
        line = line.strip()
        for field_spec in spec.fields:
            if not line.startswith(field_spec.prefix):
                continue
            value = _convert(line[len(field_spec.prefix):], field_spec.kind)
            # A rejected URL leaves any earlier accepted one in place
            if value is not None:
                values[field_spec.attr] = value
            break
    return values


def parse_delimited(text: str, mode: SearchMode = SearchMode.RECIPE) -> list[Record]:
    """Parse [<KIND>_START] ... [<KIND>_END] blocks into records"""
    if not isinstance(text, str) or not text:
        return []

    spec = RECORD_SPECS[mode]
    records = []

    # Everything before the first start marker is model preamble
    for segment in text.split(spec.start_marker)[1:]:
        body = segment.split(spec.end_marker, 1)[0]
        values = _read_fields(body, spec)
        if not values.get("name"):
            continue
        records.append(spec.factory(**values))

    return records


def _load_json(text: str):
    stripped = text.strip()
    fenced = _CODE_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1).strip()
    if not stripped or stripped[0] not in "[{":
        return None
    try:
        return json.loads(stripped)
    except ValueError:
        return None


def _json_items(data) -> list:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("records", "recipes", "businesses", "results"):
            if isinstance(data.get(key), list):
                return data[key]
        return [data]
    return []


def parse_json(data, mode: SearchMode = SearchMode.RECIPE) -> list[Record]:
    """Build records from an already-decoded JSON payload"""
    spec = RECORD_SPECS[mode]
    records = []

    for item in _json_items(data):
        if not isinstance(item, dict):
            continue
        try:
            payload = spec.payload.model_validate(item)
        except ValidationError as e:
            logger.debug("Skipping malformed %s item: %s", mode.value, e)
            continue

        values = payload.model_dump()
        if not values.get("name"):
            continue
        values["thumbnail_url"] = clean_url(values.get("thumbnail_url"))
        records.append(spec.factory(**values))

    return records


def parse_records(text: str, mode: SearchMode = SearchMode.RECIPE) -> list[Record]:
    """
    Parse model output into records of the given kind.

    JSON output (from providers with structured output) is preferred;
    anything else goes through the delimiter parser. Never raises.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    data = _load_json(text)
    if data is not None:
        records = parse_json(data, mode)
        if records:
            return records

    return parse_delimited(text, mode)
