"""
Station routing by menu category name

Rules are checked in order and the first match wins, so a "Cold Appetizers"
category lands on COLD even though "appetizer" alone would mean HOT.
"""

from typing import Optional

from kitchenflow.models.ticket import Station

BAR_KEYWORDS = (
    "beverage", "drink", "bar", "juice", "coffee", "tea",
    "cocktail", "mocktail", "shake", "smoothie",
)
COLD_KEYWORDS = ("salad", "cold", "ice cream")
HOT_KEYWORDS = (
    "main", "entree", "hot", "appetizer", "dessert",
    "starter", "bread", "rice", "soup", "curry", "tandoor", "pizza", "burger", "pasta",
)


def route_station(category_name: Optional[str]) -> Station:
    """Map a menu category name to the station that prepares it"""
    name = (category_name or "").lower()

    if any(keyword in name for keyword in BAR_KEYWORDS):
        return Station.BAR
    if any(keyword in name for keyword in COLD_KEYWORDS) or ("appetizer" in name and "cold" in name):
        return Station.COLD
    if any(keyword in name for keyword in HOT_KEYWORDS):
        return Station.HOT
    return Station.DEFAULT
