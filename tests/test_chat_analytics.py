"""Unit tests for the chat analytics helpers."""

from datetime import datetime

from utils.chat_analytics import (
    average_per_chat,
    categorize_texts,
    daily_activity,
    matches_query,
    top_keywords,
    truncate,
)


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("x" * 10, 10) == "x" * 10
    assert truncate("x" * 11, 10) == "x" * 10 + "..."


def test_matches_query_ignores_case():
    assert matches_query("Late Blight on potato", "BLIGHT")
    assert not matches_query("Late Blight on potato", "rust")


def test_top_keywords_counts_long_words_only():
    texts = ["Why are the leaves yellow", "yellow leaves again", "YELLOW"]
    assert top_keywords(texts) == [
        {"word": "yellow", "count": 3},
        {"word": "leaves", "count": 2},
        {"word": "again", "count": 1},
    ]


def test_top_keywords_keeps_punctuation_and_limit():
    texts = ["spots, spots spots"] + [f"word{i}" for i in range(20)]
    keywords = top_keywords(texts)
    assert len(keywords) == 10
    assert keywords[0] == {"word": "spots", "count": 2}
    assert keywords[1] == {"word": "spots,", "count": 1}


def test_daily_activity_keeps_seven_most_recent_days():
    stamps = [datetime(2024, 1, day, 9) for day in range(1, 11)] + [datetime(2024, 1, 10, 18)]
    activity = daily_activity(stamps)
    assert len(activity) == 7
    assert activity[0] == {"date": "2024-01-10", "count": 2}
    assert activity[-1] == {"date": "2024-01-04", "count": 1}


def test_average_per_chat():
    assert average_per_chat(0, 0) == 0
    assert average_per_chat(7, 3) == 2.3
    assert average_per_chat(4, 2) == 2.0


def test_average_per_chat_rounds_halves_up():
    assert average_per_chat(5, 4) == 1.3
    assert average_per_chat(3, 8) == 0.4


def test_fungicide_is_treatment():
    categories = categorize_texts(["Is a fungicide safe here?"])
    assert categories["treatment"] == 1
    assert categories["general"] == 0


def test_unmatched_text_is_only_general():
    categories = categorize_texts(["Hello, how are you?"])
    assert categories == {
        "disease": 0,
        "treatment": 0,
        "prevention": 0,
        "fertilizer": 0,
        "irrigation": 0,
        "pest": 0,
        "general": 1,
    }


def test_text_can_count_in_several_categories():
    categories = categorize_texts(["Spray pesticide for the caterpillar"])
    assert categories["treatment"] == 1
    assert categories["pest"] == 1
    assert categories["general"] == 0
