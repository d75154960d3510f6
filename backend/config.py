"""
Roots & Recipes Backend Configuration
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# LLM provider: "gemini" (Google Search grounding) or "openrouter" (web plugin)
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").lower()

# Gemini Configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", os.getenv("GOOGLE_API_KEY", ""))
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")

# OpenRouter Configuration
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "google/gemini-2.5-flash")

# LLM Settings
LLM_TEMPERATURE = 0.7
LLM_MAX_TOKENS = 4000
LLM_TIMEOUT = 60
# Ask for schema-constrained JSON instead of the delimiter format
# (only honoured by providers that support it)
STRUCTURED_OUTPUT = os.getenv("STRUCTURED_OUTPUT", "false").lower() == "true"

# Search Settings
INITIAL_RESULT_COUNT = 3
LOAD_MORE_RESULT_COUNT = 6
DEFAULT_MAX_TIME = 60

# Oldest sessions are dropped once this many are open
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))

# Link preview settings
PREVIEW_PROXIES = [
    "https://corsproxy.io/?{url}",
    "https://api.allorigins.win/raw?url={url}",
]
PREVIEW_TIMEOUT = 6.0  # seconds, per proxy attempt
PREVIEW_USER_AGENT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
FAVICON_SERVICE_URL = "https://www.google.com/s2/favicons?domain={host}&sz=64"
PLACEHOLDER_IMAGE = (
    "data:image/svg+xml;utf8,"
    "<svg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 400 300'>"
    "<rect width='400' height='300' fill='%23fcfaf7'/>"
    "<circle cx='200' cy='150' r='70' fill='none' stroke='%23059669' stroke-width='8'/>"
    "<path d='M170 150h60M200 120v60' stroke='%23064e3b' stroke-width='8' stroke-linecap='round'/>"
    "</svg>"
)

# CORS - Frontend URLs
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    os.getenv("FRONTEND_URL", ""),  # Production frontend URL
]
# Filter empty strings
CORS_ORIGINS = [origin for origin in CORS_ORIGINS if origin]

# Selectable heritages
COMMON_CULTURES = [
    "East Asian", "Mexican & Central American", "Mediterranean", "South Asian (Indian/Pakistani)",
    "West African", "Caribbean", "Middle Eastern", "Eastern European",
    "Southeast Asian", "South American (Andean/Amazonian)", "Nordic",
    "Native American / Indigenous", "Jewish Diaspora", "Southern US Soul Food",
    "Balkan", "Polynesian", "Central Asian", "Maghrebi (North African)",
    "East African", "Persian", "Appalachian", "Cajun & Creole", "Levantine"
]

# Pantry ingredients offered in the picker
COMMON_INGREDIENTS = [
    "Chicken", "Beef", "Pork", "Tofu", "Lentils", "Chickpeas", "Beans",
    "Rice", "Flour", "Pasta", "Potatoes", "Sweet Potatoes", "Tomatoes",
    "Onions", "Garlic", "Ginger", "Spinach", "Kale", "Carrots",
    "Bell Peppers", "Chili Peppers", "Eggs", "Milk", "Coconut Milk", "Yogurt",
    "Cheese", "Cilantro", "Parsley", "Lemon", "Lime", "Corn / Masa",
    "Avocado", "Mushrooms", "Shrimp", "Salmon", "Butter", "Olive Oil",
    "Honey", "Soy Sauce", "Cumin", "Turmeric", "Cinnamon", "Basil"
]

COOKING_APPLIANCES = [
    "Oven", "Stove", "Air Fryer", "Slow Cooker", "Pressure Cooker", "Grill", "Microwave"
]

PROCESSING_TOOLS = [
    "Blender", "Rice Cooker", "Mortar & Pestle", "Grater", "Food Processor", "Whisk", "Rolling Pin"
]
