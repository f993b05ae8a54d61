"""Database models for feedback storage."""
import threading
import time
from datetime import datetime, UTC

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

from schemas import (
    Analytics,
    FeedbackRecord,
    FeedbackText,
    PersonalInfo,
    Ratings,
    SentimentAnalysis,
    VisitInfo,
)

Base = declarative_base()

_id_lock = threading.Lock()
_last_id = 0


def generate_feedback_id() -> str:
    """Time-based feedback id, strictly increasing within the process."""
    global _last_id
    with _id_lock:
        candidate = time.time_ns() // 1000
        _last_id = max(candidate, _last_id + 1)
        return str(_last_id)


def analysis_columns(analysis: SentimentAnalysis, analytics: Analytics) -> dict:
    """Column values for sentiment results and analytics, always set together."""
    return {
        "sentiment_analysis": analysis.model_dump(mode="json"),
        "total_words": analytics.total_words,
        "has_negative_feedback": analytics.has_negative_feedback,
        "recommendation_score": analytics.recommendation_score,
        "priority_level": analytics.priority_level
    }


class Feedback(Base):
    """Feedback database model.

    ``seq`` follows insertion order; ``feedback_id`` is the public id.
    """

    __tablename__ = "feedback"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    feedback_id = Column(String(32), unique=True, index=True, nullable=False, default=generate_feedback_id)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=False)
    mobile = Column(String(10), nullable=False)
    address = Column(Text, nullable=True)
    location_visited = Column(String(200), nullable=False, index=True)

    cleanliness = Column(String(20), nullable=False)
    staff_behavior = Column(String(20), nullable=False)
    information = Column(String(20), nullable=False)
    signage = Column(String(20), nullable=False)
    safety = Column(String(20), nullable=False)
    average_score = Column(Float, nullable=False)

    overall_experience = Column(Text, nullable=False)
    suggestions = Column(Text, nullable=False, default="")

    sentiment_analysis = Column(JSON, nullable=True)  # SentimentAnalysis as JSON

    total_words = Column(Integer, default=0)
    has_negative_feedback = Column(Boolean, default=False)
    recommendation_score = Column(Integer, nullable=False)
    priority_level = Column(String(10), nullable=False)  # high, medium, low

    def to_record(self) -> FeedbackRecord:
        """Convert model to a FeedbackRecord."""
        return FeedbackRecord(
            id=self.feedback_id,
            timestamp=self.created_at,
            personal_info=PersonalInfo(
                name=self.name,
                email=self.email,
                mobile=self.mobile,
                address=self.address
            ),
            visit_info=VisitInfo(location_visited=self.location_visited),
            ratings=Ratings(
                cleanliness=self.cleanliness,
                staff_behavior=self.staff_behavior,
                information=self.information,
                signage=self.signage,
                safety=self.safety,
                average_score=self.average_score
            ),
            feedback=FeedbackText(
                overall_experience=self.overall_experience,
                suggestions=self.suggestions or ""
            ),
            sentiment_analysis=SentimentAnalysis.model_validate(self.sentiment_analysis or {}),
            analytics=Analytics(
                total_words=self.total_words or 0,
                has_negative_feedback=bool(self.has_negative_feedback),
                recommendation_score=self.recommendation_score,
                priority_level=self.priority_level
            )
        )
