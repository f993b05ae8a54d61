"""Aggregate statistics and advisory insights over stored feedback."""
from collections import Counter
from typing import Iterable, List, Sequence

from config import config
from schemas import (
    AverageRatings,
    EmotionalInsights,
    FeedbackRecord,
    FeedbackStats,
    Insight,
    PriorityDistribution,
    SentimentDistribution,
    TopItem,
)
from scoring import rating_value, round_2dp, round_half_up


def get_top_items(items: Iterable[str], top_n: int = 5) -> List[TopItem]:
    """Most frequent items, ties kept in first-seen order."""
    counts = Counter(items)
    return [TopItem(item=item, count=count) for item, count in counts.most_common(top_n)]


def compute_stats(records: Sequence[FeedbackRecord]) -> FeedbackStats:
    """Fold all feedback records into a single analytics report.

    An empty sequence yields the zero-value report.
    """
    if not records:
        return FeedbackStats()

    total = len(records)
    by_location: dict = {}
    sentiment_distribution = SentimentDistribution()
    priority_distribution = PriorityDistribution()
    rating_totals = {category: [0, 0] for category in config.RATING_CATEGORIES}
    all_emotions: List[str] = []
    all_key_phrases: List[str] = []
    total_recommendation = 0

    for record in records:
        location = record.visit_info.location_visited
        by_location[location] = by_location.get(location, 0) + 1

        level = record.analytics.priority_level
        setattr(priority_distribution, level, getattr(priority_distribution, level) + 1)

        for category, bucket in rating_totals.items():
            rating = getattr(record.ratings, category)
            if rating:
                bucket[0] += rating_value(rating)
                bucket[1] += 1

        combined = record.sentiment_analysis.combined_analysis
        if combined is not None:
            setattr(
                sentiment_distribution,
                combined.sentiment,
                getattr(sentiment_distribution, combined.sentiment) + 1
            )
            all_emotions.extend(combined.emotions)
            all_key_phrases.extend(combined.key_phrases)

        total_recommendation += record.analytics.recommendation_score

    category_means = {
        category: round_2dp(score_sum / count)
        for category, (score_sum, count) in rating_totals.items()
        if count > 0
    }
    rated = [mean for mean in category_means.values() if mean > 0]
    overall = round_2dp(sum(rated) / len(rated)) if rated else 0.0

    stats = FeedbackStats(
        total=total,
        by_location=by_location,
        average_ratings=AverageRatings(**category_means, overall=overall),
        sentiment_distribution=sentiment_distribution,
        priority_distribution=priority_distribution,
        emotional_insights=EmotionalInsights(
            top_emotions=get_top_items(all_emotions, 5),
            common_key_phrases=get_top_items(all_key_phrases, 10)
        ),
        recommendation_score=round_half_up(total_recommendation / total)
    )
    stats.insights = generate_insights(stats)
    return stats


def generate_insights(stats: FeedbackStats) -> List[Insight]:
    """Advisory messages derived from a stats report.

    Each rule is evaluated independently; all matching insights are returned.
    """
    insights: List[Insight] = []
    if stats.total == 0:
        return insights

    negative = stats.sentiment_distribution.negative
    if negative > stats.total * config.NEGATIVE_SHARE_WARNING:
        share = round_half_up(negative / stats.total * 100)
        insights.append(Insight(
            type="warning",
            message=f"{share}% of feedback has negative sentiment. Consider investigating common issues.",
            priority="high"
        ))

    for category, score in stats.average_ratings.model_dump(by_alias=True).items():
        if 0 < score < config.LOW_RATING_THRESHOLD:
            insights.append(Insight(
                type="improvement",
                message=f"{category} rating is below average ({score}/4). Focus on improving this area.",
                priority="medium"
            ))

    high = stats.priority_distribution.high
    if high > 0:
        insights.append(Insight(
            type="urgent",
            message=f"{high} feedback items require immediate attention.",
            priority="high"
        ))

    score = stats.recommendation_score
    if score < config.RECOMMENDATION_CONCERN_BELOW:
        insights.append(Insight(
            type="concern",
            message=f"Overall recommendation score is {score}%. Consider addressing key concerns.",
            priority="medium"
        ))
    elif score > config.RECOMMENDATION_PRAISE_ABOVE:
        insights.append(Insight(
            type="positive",
            message=f"Excellent recommendation score of {score}%! Keep up the good work.",
            priority="low"
        ))

    return insights
