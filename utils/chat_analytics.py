# utils/chat_analytics.py
"""
Keyword statistics, topic categories and text search over chat messages.

Everything here is a plain function over already-loaded values; nothing
touches the database.
"""
from collections import Counter
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "disease": ["blight", "rust", "spot", "rot", "mildew", "fungus", "infection"],
    "treatment": ["treatment", "cure", "fungicide", "pesticide", "spray", "apply"],
    "prevention": ["prevent", "avoid", "protect", "resistant", "rotation"],
    "fertilizer": ["fertilizer", "nitrogen", "phosphorus", "potassium", "npk", "nutrient"],
    "irrigation": ["water", "irrigation", "moisture", "drought", "rain"],
    "pest": ["pest", "insect", "bug", "worm", "caterpillar", "beetle"],
}
GENERAL_CATEGORY = "general"

ELLIPSIS = "..."


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def matches_query(text: str, query: str) -> bool:
    """Case-insensitive substring match."""
    return query.lower() in text.lower()


def top_keywords(texts: Iterable[str], limit: int = 10, min_length: int = 4) -> List[dict]:
    """
    Most frequent whitespace-separated words of at least `min_length`
    characters, lowercased. Ties keep first-seen order.
    """
    counts = Counter()
    for text in texts:
        for word in text.lower().split():
            if len(word) >= min_length:
                counts[word] += 1
    return [{"word": word, "count": count} for word, count in counts.most_common(limit)]


def daily_activity(timestamps: Iterable[datetime], days: int = 7) -> List[dict]:
    """Counts per calendar day for the `days` most recent days seen, newest first."""
    counts = Counter(ts.date().isoformat() for ts in timestamps if ts is not None)
    ordered = sorted(counts.items(), key=lambda item: item[0], reverse=True)
    return [{"date": date, "count": count} for date, count in ordered[:days]]


def average_per_chat(total_messages: int, total_chats: int) -> float:
    if total_chats == 0:
        return 0
    average = Decimal(total_messages) / Decimal(total_chats)
    return float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def categorize_texts(texts: Iterable[str]) -> Dict[str, int]:
    """
    Counts each text once per category whose keywords it contains; texts
    matching no category count once under "general".
    """
    categories = {category: 0 for category in CATEGORY_KEYWORDS}
    categories[GENERAL_CATEGORY] = 0

    for text in texts:
        lowered = text.lower()
        categorized = False
        for category, words in CATEGORY_KEYWORDS.items():
            if any(word in lowered for word in words):
                categories[category] += 1
                categorized = True
        if not categorized:
            categories[GENERAL_CATEGORY] += 1

    return categories
