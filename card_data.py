"""
card_data.py
============
Static configuration data for the card engine.

BRAND_COLORS is scanned in order and the first key contained in the
lower-cased brand name wins, so the order below is part of the behaviour.
"""

DEFAULT_BRAND_COLOR = "hsl(268, 83%, 58%)"

BRAND_COLORS = (
    ("starbucks", "hsl(155, 59%, 27%)"),
    ("spotify", "hsl(141, 73%, 42%)"),
    ("nike", "hsl(0, 0%, 0%)"),
    ("mcdonalds", "hsl(51, 100%, 50%)"),
    ("mcdonald", "hsl(51, 100%, 50%)"),
    ("h&m", "hsl(0, 84%, 60%)"),
    ("gap", "hsl(219, 100%, 66%)"),
    ("american eagle", "hsl(219, 100%, 66%)"),
    ("amazon", "hsl(37, 100%, 50%)"),
    ("apple", "hsl(0, 0%, 0%)"),
    ("google", "hsl(214, 89%, 52%)"),
    ("microsoft", "hsl(214, 89%, 52%)"),
    ("walmart", "hsl(214, 89%, 52%)"),
    ("target", "hsl(0, 84%, 60%)"),
    ("zara", "hsl(0, 0%, 0%)"),
    ("adidas", "hsl(0, 0%, 0%)"),
    ("puma", "hsl(0, 0%, 0%)"),
    ("uber", "hsl(0, 0%, 0%)"),
    ("netflix", "hsl(0, 84%, 60%)"),
    ("youtube", "hsl(0, 84%, 60%)"),
    ("facebook", "hsl(214, 89%, 52%)"),
    ("instagram", "hsl(320, 100%, 50%)"),
    ("twitter", "hsl(203, 89%, 53%)"),
    ("linkedin", "hsl(214, 89%, 52%)"),
    ("samsung", "hsl(214, 89%, 52%)"),
    ("sony", "hsl(0, 0%, 0%)"),
    ("pepsi", "hsl(214, 89%, 52%)"),
    ("coca cola", "hsl(0, 84%, 60%)"),
    ("dominos", "hsl(214, 89%, 52%)"),
    ("pizza hut", "hsl(0, 84%, 60%)"),
    ("kfc", "hsl(0, 84%, 60%)"),
    ("burger king", "hsl(37, 100%, 50%)"),
    ("subway", "hsl(60, 100%, 25%)"),
    ("dunkin", "hsl(24, 100%, 50%)"),
    ("taco bell", "hsl(268, 83%, 58%)"),
)

# Shown to first-time users whose collection is empty. Never persisted.
SAMPLE_CARDS = (
    {
        "id": "sample-1",
        "offer_name": "Rewards • Perks",
        "brand_name": "Starbucks",
        "sector": "Food & Dining",
        "value": 0.0,
        "brand_color": "hsl(155, 59%, 27%)",
    },
    {
        "id": "sample-2",
        "offer_name": "Fashion • Gift",
        "brand_name": "American Eagle",
        "sector": "Fashion & Clothing",
        "value": 0.0,
        "brand_color": "hsl(219, 100%, 66%)",
    },
    {
        "id": "sample-3",
        "offer_name": "Music • Gift",
        "brand_name": "Spotify Premium",
        "sector": "Entertainment",
        "value": 0.0,
        "brand_color": "hsl(141, 73%, 42%)",
    },
    {
        "id": "sample-4",
        "offer_name": "Sport • Gift",
        "brand_name": "Nike Member",
        "sector": "Sports & Fitness",
        "value": 0.0,
        "brand_color": "hsl(0, 0%, 0%)",
    },
)

SAMPLE_CARD_IDS = frozenset(card["id"] for card in SAMPLE_CARDS)
