"""
Prompt Templates
Natural-language instructions sent to the search-grounded model
"""

from roots.models import SearchCriteria


RECIPE_FORMAT = """[RECIPE_START]
NAME: [Name of the dish]
HERITAGE: [Specific community or culture the dish comes from]
SUMMARY: [2-3 complete sentences describing the dish]
HISTORY: [Cultural significance and history of the dish, in complete sentences]
INGREDIENTS_USED: [Every ingredient with exact quantities, separated by semicolons]
APPLIANCES_USED: [Every kitchen tool and appliance used, separated by semicolons]
TIME_ESTIMATE: [Total minutes, as a number only]
SOURCE_URL: [The exact URL of the recipe you found]
THUMBNAIL_URL: [The direct image link (og:image or main featured image) of the article at SOURCE_URL, or blank if you cannot find one]
[RECIPE_END]"""

BUSINESS_FORMAT = """[BUSINESS_START]
NAME: [Name of the business]
HERITAGE: [Community or culture the business represents]
SUMMARY: [2-3 complete sentences describing what they offer]
SIGNIFICANCE: [Why this business matters to its community, in complete sentences]
ADDRESS: [Full street address]
WEBSITE: [The business website, or its listing page if it has none]
THUMBNAIL_URL: [A direct image link from the business website, or blank if you cannot find one]
PARKING_SPOTS: [Parking availability if known, otherwise blank]
WHEELCHAIR_ACCESSIBLE: [Yes, No or Unknown]
AUTOMATIC_DOORS: [Yes, No or Unknown]
[BUSINESS_END]"""

RECIPE_JSON_SHAPE = (
    "Respond with a JSON array. Each item has the keys name, heritage, summary, "
    "history, ingredients (array of strings with quantities), appliances "
    "(array of strings), time (minutes as a string), source_url and thumbnail_url."
)

BUSINESS_JSON_SHAPE = (
    "Respond with a JSON array. Each item has the keys name, heritage, summary, "
    "significance, address, website, thumbnail_url, parking_spots, "
    "wheelchair_accessible and automatic_doors."
)


def _culture_clause(criteria: SearchCriteria) -> str:
    if criteria.cultures:
        return f"specifically from {' or '.join(criteria.cultures)} heritage"
    return "from diverse global heritage"


def _exclude_clause(criteria: SearchCriteria, noun: str) -> str:
    if not criteria.exclude_names:
        return ""
    return f"DO NOT include any of the following {noun}: {', '.join(criteria.exclude_names)}."


def build_recipe_prompt(
    criteria: SearchCriteria,
    count: int,
    structured: bool = False
) -> str:
    """Prompt asking for `count` grounded heritage recipes"""
    appliances = ", ".join(criteria.appliances) if criteria.appliances else "basic stovetop cooking only"
    output = (
        RECIPE_JSON_SHAPE if structured
        else f"For EACH recipe, use this EXACT delimiter-based format:\n\n{RECIPE_FORMAT}"
    )

    return f"""Search the web for real, authentic, and currently live recipes {_culture_clause(criteria)} that can be made using these core ingredients: {', '.join(criteria.ingredients)}.
The user has access to these appliances: {appliances}.
Crucially, only return recipes that can be prepared in under {criteria.max_time_minutes} minutes.
{_exclude_clause(criteria, "recipes")}

Please return exactly {count} recipes. You MUST verify that the SOURCE_URL is currently active and reachable.

{output}

Be authentic and specific. We want real links to real heritage cooking."""


def build_business_prompt(
    criteria: SearchCriteria,
    count: int,
    structured: bool = False
) -> str:
    """Prompt asking for `count` small heritage businesses near the ZIP code"""
    output = (
        BUSINESS_JSON_SHAPE if structured
        else f"For EACH business, use this EXACT delimiter-based format:\n\n{BUSINESS_FORMAT}"
    )

    return f"""Search the web for small, independently owned businesses near ZIP code {criteria.zip_code} {_culture_clause(criteria)} that sell dishes or groceries featuring these ingredients: {', '.join(criteria.ingredients)}.
Prefer family-run restaurants, markets, bakeries and food stalls over chains.
The user has {criteria.max_time_minutes} minutes, so only return places where food can be picked up or served within that time.
{_exclude_clause(criteria, "businesses")}

Please return exactly {count} businesses that are currently open. You MUST verify that the WEBSITE is currently active and reachable.

{output}

Be authentic and specific. We want real places that keep heritage food alive."""
