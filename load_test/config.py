"""
Load test configuration: target, journey data, ramp profile and thresholds.
"""

import os
import re

# ============================================================================
# CONFIGURATION
# ============================================================================

BASE_URL = os.getenv("BASE_URL", "http://localhost:8080")
SUMMARY_PATH = os.getenv("SUMMARY_PATH", "results/load-test-summary.json")

CHECKOUT_PROBABILITY = float(os.getenv("CHECKOUT_PROBABILITY", "0.25"))
SEARCH_PROBABILITY = float(os.getenv("SEARCH_PROBABILITY", "0.1"))

SESSION_COOKIE = "shop_session-id"

# Online Boutique product IDs
PRODUCTS = (
    "OLJCESPC7Z",  # Vintage Typewriter
    "66VCHSJNUP",  # Vintage Camera Lens
    "1YMWWN1N4O",  # Home Barista Kit
    "L9ECAV7KIM",  # Terrarium
    "2ZYFJ3GM2N",  # Film Camera
    "0PUK6V6EV0",  # Vintage Record Player
    "LS4PSXUNUM",  # Metal Camping Mug
    "9SIQT8TOJO",  # City Bike
    "6E92ZMYYFZ",  # Air Plant
)

SEARCH_TERMS = ("vintage", "camera", "plant", "bike", "mug")

CHECKOUT_DETAILS = {
    "street_address": "123 Main St",
    "zip_code": "12345",
    "city": "San Francisco",
    "state": "CA",
    "country": "US",
    "credit_card_number": "4111-1111-1111-1111",
    "credit_card_expiration_month": "12",
    "credit_card_expiration_year": "2025",
    "credit_card_cvv": "123",
}

# (duration, target users)
STAGES = [
    ("30s", 10),   # ramp up to 10 users
    ("1m", 50),    # ramp up to 50 users
    ("2m", 50),    # hold 50 users
    ("30s", 100),  # spike to 100 users
    ("1m", 100),   # hold 100 users
    ("30s", 0),    # ramp down
]

THRESHOLDS = {
    "http_req_duration": ["p(95)<1000", "p(99)<2000"],
    "http_req_failed": ["rate<0.01"],
    "errors": ["rate<0.05"],
}

# ============================================================================
# HELPERS
# ============================================================================

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600, "m": 60, "s": 1, "ms": 0.001}


def parse_duration(value) -> float:
    """Convert a duration such as ``30s``, ``2m`` or ``1m30s`` to seconds."""
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        raise ValueError(f"Invalid duration: {value!r}")
    return sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)
