"""Starter data written the first time a store is opened."""

from .schemas import Category, InventoryItem

DEFAULT_CATEGORIES = [
    Category(id="essentials", name="Essentials", description="Basic food items"),
    Category(id="grains", name="Grains", description="Rice, pasta, and other grains"),
    Category(id="canned", name="Canned Goods", description="Canned foods and preserved items"),
    Category(id="produce", name="Produce", description="Fresh fruits and vegetables"),
    Category(id="dairy", name="Dairy", description="Milk, cheese, and other dairy products"),
    Category(id="south-asian", name="South Asian", description="South Asian food items"),
    Category(id="other", name="Other", description="Miscellaneous items"),
]

DEFAULT_CATEGORY_IDS = frozenset(c.id for c in DEFAULT_CATEGORIES)

# (id, name, category, quantity, studentLimit, limitDuration days, extra minutes, unit)
_SAMPLE_ROWS = [
    ("1", "Rice", "grains", 50, 1, 7, 0, "kg"),
    ("2", "Beans", "essentials", 30, 2, 7, 0, "item"),
    ("3", "Pasta", "essentials", 40, 2, 7, 0, "item"),
    ("4", "Canned Soup", "canned", 25, 3, 7, 0, "item"),
    ("5", "Cereal", "essentials", 20, 1, 7, 0, "item"),
    ("6", "Milk", "dairy", 15, 1, 0, 30, "item"),
    ("7", "Bread", "essentials", 10, 1, 3, 0, "item"),
    ("8", "Eggs", "dairy", 24, 1, 7, 0, "item"),
    ("9", "Apples", "produce", 30, 3, 3, 0, "item"),
    ("10", "Potatoes", "produce", 40, 2, 7, 0, "item"),
    ("11", "Lentils", "south-asian", 35, 1, 7, 0, "kg"),
    ("12", "Chickpeas", "south-asian", 28, 1, 7, 0, "kg"),
    ("13", "Basmati Rice", "south-asian", 45, 1, 7, 0, "kg"),
    ("14", "Canned Tomatoes", "canned", 20, 2, 7, 0, "item"),
    ("15", "Oatmeal", "essentials", 18, 1, 7, 0, "kg"),
    ("16", "Quinoa", "grains", 22, 1, 7, 0, "kg"),
    ("17", "Yogurt", "dairy", 18, 2, 0, 45, "item"),
    ("18", "Bananas", "produce", 35, 3, 3, 0, "item"),
    ("19", "Masala Spice Mix", "south-asian", 15, 1, 14, 0, "item"),
    ("20", "Canned Beans", "canned", 30, 2, 7, 0, "item"),
]


def sample_inventory() -> list[InventoryItem]:
    return [
        InventoryItem(
            id=item_id,
            name=name,
            category=category,
            quantity=quantity,
            student_limit=limit,
            limit_duration=days,
            limit_duration_minutes=minutes,
            unit=unit,
            is_weighed=unit != "item",
        )
        for item_id, name, category, quantity, limit, days, minutes, unit in _SAMPLE_ROWS
    ]
