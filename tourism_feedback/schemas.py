"""Pydantic schemas for sentiment results, feedback records and API payloads."""
import math
from datetime import datetime, UTC
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Sentiment = Literal["positive", "negative", "neutral"]
PriorityLevel = Literal["high", "medium", "low"]

VALID_SENTIMENTS = ("positive", "negative", "neutral")


def utc_now() -> datetime:
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base for models exposed with camelCase keys on the HTTP surface."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Sentiment classification
# ---------------------------------------------------------------------------

class SentimentResult(BaseModel):
    """Structured sentiment classification of a single text.

    A confidence of exactly 0.0 marks a fallback result produced when the
    model could not be reached or its answer could not be parsed.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    sentiment: Sentiment = "neutral"
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    emotions: List[str] = Field(default_factory=list)
    key_phrases: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


class ModelSentimentPayload(BaseModel):
    """JSON object returned by the LLM, with missing fields defaulted.

    The model is free to add fields (``reasoning`` and so on); they are
    dropped.
    """

    model_config = ConfigDict(extra="ignore")

    sentiment: Sentiment = "neutral"
    confidence: float = 0.5
    emotions: List[str] = Field(default_factory=list)
    key_phrases: List[str] = Field(default_factory=list)

    @field_validator("sentiment", mode="before")
    @classmethod
    def normalize_sentiment(cls, value):
        if value is None:
            return "neutral"
        label = str(value).strip().lower()
        return label if label in VALID_SENTIMENTS else "neutral"

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, value):
        if value is None:
            return 0.5
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return 0.5
        if math.isnan(confidence):
            return 0.5
        return min(1.0, max(0.0, confidence))

    @field_validator("emotions", "key_phrases", mode="before")
    @classmethod
    def coerce_string_list(cls, value):
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]


class SentimentSummary(BaseModel):
    """Summary statistics over a batch of sentiment results."""

    total_feedback: int
    positive: float = Field(..., description="Share of positive results, 0-100")
    negative: float = Field(..., description="Share of negative results, 0-100")
    neutral: float = Field(..., description="Share of neutral results, 0-100")
    average_confidence: float
    most_common_emotions: List[str]
    analysis_timestamp: datetime = Field(default_factory=utc_now)


class SentimentRequest(CamelModel):
    """Request schema for analyzing a single text."""

    feedback: str = Field(..., min_length=1, description="Text to analyze")
    include_emotions: bool = True


class BatchSentimentRequest(BaseModel):
    """Request schema for batch analysis and summaries."""

    feedbacks: List[str]


# ---------------------------------------------------------------------------
# Feedback records
# ---------------------------------------------------------------------------

class FeedbackRequest(CamelModel):
    """Visitor feedback submission.

    Every field is optional at the schema level; required fields are checked
    by the feedback service so the error can list all missing fields at once.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "name": "Asha Kumari",
                "email": "asha@example.com",
                "mobile": "9876543210",
                "address": "Ranchi",
                "locationVisited": "Hundru Falls",
                "cleanliness": "Very Good",
                "staffBehavior": "Excellent",
                "information": "Average",
                "signage": "Very Good",
                "safety": "Excellent",
                "overallExperience": "Beautiful waterfall, the steps were well maintained.",
                "suggestions": "More drinking water stations near the viewpoint."
            }
        }
    )

    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    location_visited: Optional[str] = None
    cleanliness: Optional[str] = None
    staff_behavior: Optional[str] = None
    information: Optional[str] = None
    signage: Optional[str] = None
    safety: Optional[str] = None
    overall_experience: Optional[str] = None
    suggestions: Optional[str] = None


class PersonalInfo(CamelModel):
    name: str
    email: str
    mobile: str
    address: Optional[str] = None


class VisitInfo(CamelModel):
    location_visited: str


class Ratings(CamelModel):
    cleanliness: str
    staff_behavior: str
    information: str
    signage: str
    safety: str
    average_score: float = Field(..., description="Mean of the five ratings on the 1-4 scale")


class FeedbackText(CamelModel):
    overall_experience: str
    suggestions: str = ""


class SentimentAnalysis(CamelModel):
    """Per-field sentiment results; absent when the text was too short."""

    overall_experience: Optional[SentimentResult] = None
    suggestions: Optional[SentimentResult] = None
    combined_analysis: Optional[SentimentResult] = None


class Analytics(CamelModel):
    total_words: int = 0
    has_negative_feedback: bool = False
    recommendation_score: int = Field(..., ge=0, le=100)
    priority_level: PriorityLevel


class FeedbackRecord(CamelModel):
    """A stored visitor submission with its derived analytics."""

    id: str
    timestamp: datetime
    personal_info: PersonalInfo
    visit_info: VisitInfo
    ratings: Ratings
    feedback: FeedbackText
    sentiment_analysis: SentimentAnalysis = Field(default_factory=SentimentAnalysis)
    analytics: Analytics


class SubmitFeedbackResponse(CamelModel):
    """Response schema for a feedback submission."""

    success: bool = True
    message: str = "Feedback submitted successfully"
    feedback_id: str
    sentiment: Optional[Sentiment] = Field(None, description="Combined sentiment, if analyzed")
    average_rating: float
    recommendation_score: int


class FeedbackListResponse(CamelModel):
    success: bool = True
    total: int
    feedback: List[FeedbackRecord]


class LocationFeedbackResponse(FeedbackListResponse):
    location: str


class ReprocessResult(CamelModel):
    processed_count: int = 0
    updated_count: int = 0


class ReprocessResponse(ReprocessResult):
    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Aggregate statistics
# ---------------------------------------------------------------------------

class AverageRatings(CamelModel):
    cleanliness: float = 0.0
    staff_behavior: float = 0.0
    information: float = 0.0
    signage: float = 0.0
    safety: float = 0.0
    overall: float = 0.0


class SentimentDistribution(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class PriorityDistribution(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class TopItem(BaseModel):
    item: str
    count: int


class EmotionalInsights(CamelModel):
    top_emotions: List[TopItem] = Field(default_factory=list)
    common_key_phrases: List[TopItem] = Field(default_factory=list)


class Insight(BaseModel):
    type: Literal["warning", "improvement", "urgent", "concern", "positive"]
    message: str
    priority: PriorityLevel


class FeedbackStats(CamelModel):
    total: int = 0
    by_location: Dict[str, int] = Field(default_factory=dict)
    average_ratings: AverageRatings = Field(default_factory=AverageRatings)
    sentiment_distribution: SentimentDistribution = Field(default_factory=SentimentDistribution)
    priority_distribution: PriorityDistribution = Field(default_factory=PriorityDistribution)
    emotional_insights: EmotionalInsights = Field(default_factory=EmotionalInsights)
    recommendation_score: int = 0
    insights: List[Insight] = Field(default_factory=list)


class StatsResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    stats: FeedbackStats
