"""Rating aggregation, recommendation score and triage priority."""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

from config import config
from schemas import PriorityLevel, SentimentResult

SENTIMENT_BONUS = {
    "positive": 10,
    "neutral": 0,
    "negative": -15
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up."""
    return math.floor(value + 0.5)


def round_2dp(value: float) -> float:
    """Round to 2 decimals, halves rounded up, on the exact binary value."""
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def rating_value(rating: Optional[str]) -> int:
    """Numeric value of a categorical rating; 0 when unrecognized."""
    return config.RATING_VALUES.get(rating, 0)


def average_rating_score(ratings: Mapping[str, Optional[str]]) -> float:
    """Mean of the five category ratings on the 1-4 scale, 2 decimals.

    Args:
        ratings: Category name (``config.RATING_CATEGORIES``) to rating label
    """
    scores = [rating_value(ratings.get(category)) for category in config.RATING_CATEGORIES]
    return round_2dp(sum(scores) / len(scores))


def recommendation_score(average_rating: float, sentiment: Optional[SentimentResult]) -> int:
    """Blend the average rating and the sentiment into a 0-100 score."""
    score = average_rating * 25

    if sentiment is not None:
        score += SENTIMENT_BONUS.get(sentiment.sentiment, 0)
        score += (sentiment.confidence - 0.5) * 10

    return max(0, min(100, round_half_up(score)))


def priority_level(sentiment: Optional[SentimentResult], average_rating: float) -> PriorityLevel:
    """Triage level for a feedback record.

    Low ratings or negative sentiment are high priority even when the other
    signal is good.
    """
    if average_rating <= 2 or (sentiment is not None and sentiment.sentiment == "negative"):
        return "high"
    if average_rating <= 3 or (sentiment is not None and sentiment.sentiment == "neutral"):
        return "medium"
    return "low"
