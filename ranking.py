"""Hypothesis Digest – scoring and category logic.

score = w_potential * potential + w_ease * ease
"""

import math
import re

from config import DEFAULT_WEIGHTS

CATEGORIES = ("Ads", "Funnel", "Product")
DEFAULT_CATEGORY = "Product"

# Labels the model may answer with, lower-cased -> canonical label.
CATEGORY_ALIASES = {
    "ads": "Ads",
    "ad": "Ads",
    "advertising": "Ads",
    "реклама": "Ads",
    "funnel": "Funnel",
    "воронка": "Funnel",
    "product": "Product",
    "продукт": "Product",
}

# Ordered (pattern, label) rules; first match wins.
CATEGORY_RULES = [
    (re.compile(
        r"\bads?\b|advert|retarget|facebook|instagram|tiktok|google ads|"
        r"\bppc\b|\bcp[clm]\b|banner|influencer|"
        r"реклам|таргет|креатив|объявлен|блогер",
        re.IGNORECASE,
    ), "Ads"),
    (re.compile(
        r"funnel|lead[- ]?magnet|\blead|e-?mail|newsletter|sequence|nurtur|"
        r"onboarding|landing|follow[- ]?up|retention|reactivat|upsell|"
        r"webinar|\btrial|abandon|"
        r"воронк|лид|рассылк|вебинар|прогрев|лендинг|дожим|пробн",
        re.IGNORECASE,
    ), "Funnel"),
]


# ── Numeric coercion ─────────────────────────────────────────────────────────

def to_number(value):
    """Coerce ``value`` to a number; anything unparseable becomes 0.

    Integral values come back as ``int`` so they print as ``7``, not ``7.0``.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        try:
            num = float(str(value if value is not None else "").strip().replace(",", "."))
        except ValueError:
            return 0
    if math.isnan(num) or math.isinf(num):
        return 0
    return int(num) if num.is_integer() else num


def clamp_rating(value):
    """Coerce a 1-10 rating, clamped to [0, 10]."""
    return max(0, min(10, to_number(value)))


# ── Scorer ───────────────────────────────────────────────────────────────────

def score(ease, potential, weights=DEFAULT_WEIGHTS):
    return weights.potential * to_number(potential) + weights.ease * to_number(ease)


# ── Category classifier ──────────────────────────────────────────────────────

def infer_category(idea):
    text = "" if idea is None else str(idea)
    for pattern, label in CATEGORY_RULES:
        if pattern.search(text):
            return label
    return DEFAULT_CATEGORY


def coerce_category(value, idea):
    """Return ``value`` as a canonical label, or infer one from ``idea``."""
    key = str(value or "").strip().lower()
    if key in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[key]
    return infer_category(idea)
