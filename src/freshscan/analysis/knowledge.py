"""Static food taxonomy, shelf-life constants and storage tips.

Built once at import and exposed read-only.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from freshscan.analysis.results import FreshnessStatus

DEFAULT_FOOD_TYPE: str = "Fresh Produce"

# Order matters: ties in keyword scoring go to the earliest entry, and the
# first keyword of each entry is its primary keyword.
FOOD_TAXONOMY: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "apple": ("apple", "fruit", "red delicious", "granny smith"),
        "banana": ("banana", "plantain"),
        "orange": ("orange", "citrus", "mandarin", "tangerine"),
        "tomato": ("tomato", "cherry tomato"),
        "potato": ("potato", "spud"),
        "carrot": ("carrot",),
        "cucumber": ("cucumber", "cuke", "zucchini"),
        "bell pepper": ("bell pepper", "pepper", "capsicum"),
        "leafy greens": ("lettuce", "cabbage", "leafy", "spinach", "kale"),
    }
)

BASE_SHELF_DAYS: Mapping[str, int] = MappingProxyType({"banana": 5, "apple": 10})
DEFAULT_SHELF_DAYS: int = 7

_Tips = Mapping[FreshnessStatus, tuple[str, ...]]


def _tips(fresh: tuple[str, ...], expiring: tuple[str, ...], rotten: tuple[str, ...]) -> _Tips:
    return MappingProxyType(
        {
            FreshnessStatus.FRESH: fresh,
            FreshnessStatus.EXPIRING: expiring,
            FreshnessStatus.ROTTEN: rotten,
        }
    )


FOOD_TIPS: Mapping[str, _Tips] = MappingProxyType(
    {
        "apple": _tips(
            fresh=(
                "Store in refrigerator to extend freshness",
                "Keep away from other fruits to prevent premature ripening",
                "Check for soft spots daily",
                "Best consumed within a week for optimal taste",
            ),
            expiring=(
                "Consume within 1-2 days",
                "Perfect for baking or cooking",
                "Store in cool, dry place",
                "Small brown spots are normal but check regularly",
            ),
            rotten=(
                "Do not consume - shows signs of spoilage",
                "Dispose of safely to prevent contamination",
                "Check other produce for similar signs",
            ),
        ),
        "banana": _tips(
            fresh=(
                "Store at room temperature until ripe",
                "Separate from bunch to slow ripening",
                "Avoid refrigeration when green",
                "Perfect for eating fresh or smoothies",
            ),
            expiring=(
                "Consume within 1-2 days",
                "Perfect for smoothies or banana bread",
                "Brown spots indicate ripeness, still safe to eat",
                "Great for baking recipes",
            ),
            rotten=(
                "Do not consume if completely black or mushy",
                "Dispose of properly",
                "Check other bananas in bunch",
            ),
        ),
        "tomato": _tips(
            fresh=(
                "Keep at room temperature, stem side down",
                "Refrigerate only once fully ripe",
                "Keep out of direct sunlight",
            ),
            expiring=(
                "Use within 1-2 days",
                "Ideal for sauces, soups or roasting",
                "Cut away small soft areas before cooking",
            ),
            rotten=(
                "Do not consume - shows signs of spoilage",
                "Dispose of safely to prevent contamination",
                "Next time, store in cool, dry place",
            ),
        ),
        "leafy": _tips(
            fresh=(
                "Wrap in a dry paper towel and refrigerate",
                "Store in the crisper drawer",
                "Wash just before eating, not before storing",
            ),
            expiring=(
                "Use within a day",
                "Wilted leaves are fine for soups or stir-fries",
                "Remove slimy leaves so they do not spread",
            ),
            rotten=(
                "Do not consume slimy or moldy leaves",
                "Dispose of safely",
                "Clean the crisper drawer",
            ),
        ),
    }
)

DEFAULT_TIPS: _Tips = _tips(
    fresh=(
        "Store in optimal conditions as per food type",
        "Check regularly for signs of spoilage",
        "Consume while at peak freshness",
        "Follow proper storage guidelines",
    ),
    expiring=(
        "Consume within 1-2 days",
        "Consider cooking or processing",
        "Check for any signs of spoilage",
        "Store in cooler conditions if possible",
    ),
    rotten=(
        "Do not consume - shows signs of spoilage",
        "Dispose of safely",
        "Clean storage area to prevent contamination",
    ),
)

# Static fallback distributions.
FALLBACK_FOOD_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("Fresh Produce", 0.2),
    ("Apple", 0.2),
    ("Banana", 0.2),
    ("Vegetable", 0.2),
    ("Fruit", 0.2),
)
FALLBACK_STATUS_WEIGHTS: tuple[tuple[FreshnessStatus, float], ...] = (
    (FreshnessStatus.FRESH, 0.6),
    (FreshnessStatus.EXPIRING, 0.35),
    (FreshnessStatus.ROTTEN, 0.05),
)
FALLBACK_CONFIDENCE: float = 0.65


def food_key(food_type: str) -> str:
    """Lowercased first word of a food type, the key for tip and shelf-life lookup."""
    words = food_type.lower().split()
    return words[0] if words else ""
