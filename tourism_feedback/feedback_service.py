"""Visitor feedback intake, sentiment reprocessing and retrieval."""
import asyncio
import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ai_analyzer import AISentimentAnalyzer
from alerting import AlertService
from analytics import compute_stats
from config import config
from database import (
    list_feedback,
    list_feedback_by_location,
    save_feedback,
    update_feedback_analysis,
)
from models import Feedback, analysis_columns
from schemas import (
    Analytics,
    FeedbackRecord,
    FeedbackRequest,
    FeedbackStats,
    ReprocessResult,
    SentimentAnalysis,
    SentimentResult,
)
from scoring import average_rating_score, priority_level, recommendation_score

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MOBILE_PATTERN = re.compile(r"[0-9]{10}")

# (attribute, public field name)
REQUIRED_FIELDS = [
    ("name", "name"),
    ("email", "email"),
    ("mobile", "mobile"),
    ("location_visited", "locationVisited"),
    ("cleanliness", "cleanliness"),
    ("staff_behavior", "staffBehavior"),
    ("information", "information"),
    ("signage", "signage"),
    ("safety", "safety"),
    ("overall_experience", "overallExperience"),
]


class FeedbackValidationError(Exception):
    """A submission is missing a required field or has a malformed one."""

    def __init__(self, error: str, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.error = error
        self.message = message
        self.fields = fields or []


def validate_submission(payload: FeedbackRequest) -> None:
    """Check required fields, email and mobile number.

    Raises:
        FeedbackValidationError: Naming the offending field(s)
    """
    missing = [
        public_name
        for attribute, public_name in REQUIRED_FIELDS
        if not (getattr(payload, attribute) or "").strip()
    ]
    if missing:
        raise FeedbackValidationError(
            "Missing required fields",
            "Please fill in all required fields",
            missing
        )

    if not EMAIL_PATTERN.search(payload.email):
        raise FeedbackValidationError(
            "Invalid email format",
            "Please provide a valid email address",
            ["email"]
        )

    if not MOBILE_PATTERN.fullmatch(payload.mobile):
        raise FeedbackValidationError(
            "Invalid mobile number",
            "Mobile number must be 10 digits",
            ["mobile"]
        )


def long_enough(text: Optional[str]) -> bool:
    return bool(text) and len(text.strip()) >= config.MIN_ANALYSIS_LENGTH


def build_analytics(
    analysis: SentimentAnalysis,
    combined_text: str,
    average_score: float
) -> Analytics:
    """Derive all analytics fields from the sentiment results and ratings."""
    combined = analysis.combined_analysis
    return Analytics(
        total_words=len(combined_text.split()),
        has_negative_feedback=combined is not None and combined.sentiment == "negative",
        recommendation_score=recommendation_score(average_score, combined),
        priority_level=priority_level(combined, average_score)
    )


class FeedbackService:
    """Builds, stores and reprocesses feedback records.

    Writes to the store (new submissions and reprocessing passes) go through
    a single lock so a reprocessing pass never interleaves with an append.
    """

    def __init__(
        self,
        analyzer: Optional[AISentimentAnalyzer],
        alert_service: Optional[AlertService] = None
    ):
        """Initialize the service.

        Args:
            analyzer: Sentiment classifier; None when AI analysis is disabled
            alert_service: Notified about high-priority feedback
        """
        self.analyzer = analyzer
        self.alert_service = alert_service
        self._write_lock = asyncio.Lock()

    async def _classify(self, text: str) -> Optional[SentimentResult]:
        if self.analyzer is None:
            return None
        try:
            return await self.analyzer.classify(text, include_emotions=True)
        except Exception as e:
            logger.warning(f"Sentiment analysis failed: {e}")
            return None

    async def analyze_texts(
        self,
        overall_experience: Optional[str],
        suggestions: Optional[str]
    ) -> Tuple[SentimentAnalysis, str]:
        """Classify the overall experience, the suggestions and both combined.

        Calls run one after another; texts shorter than the minimum length
        are not sent.

        Returns:
            The sentiment results and the combined text they were built from
        """
        analysis = SentimentAnalysis()

        if long_enough(overall_experience):
            analysis.overall_experience = await self._classify(overall_experience)
        else:
            logger.info("Overall experience too short for analysis")

        if long_enough(suggestions):
            analysis.suggestions = await self._classify(suggestions)

        combined_text = ". ".join(
            text for text in (overall_experience, suggestions) if long_enough(text)
        )
        if long_enough(combined_text):
            analysis.combined_analysis = await self._classify(combined_text)

        return analysis, combined_text

    async def submit(self, db: AsyncSession, payload: FeedbackRequest) -> FeedbackRecord:
        """Validate, analyze and store a feedback submission.

        Raises:
            FeedbackValidationError: If a required field is missing or malformed
        """
        validate_submission(payload)

        ratings = {
            category: getattr(payload, category)
            for category in config.RATING_CATEGORIES
        }
        average_score = average_rating_score(ratings)

        analysis, combined_text = await self.analyze_texts(
            payload.overall_experience,
            payload.suggestions
        )
        analytics = build_analytics(analysis, combined_text, average_score)

        feedback = Feedback(
            name=payload.name,
            email=payload.email,
            mobile=payload.mobile,
            address=payload.address,
            location_visited=payload.location_visited,
            average_score=average_score,
            overall_experience=payload.overall_experience,
            suggestions=payload.suggestions or "",
            **ratings,
            **analysis_columns(analysis, analytics)
        )

        async with self._write_lock:
            feedback = await save_feedback(db, feedback)

        record = feedback.to_record()
        combined = record.sentiment_analysis.combined_analysis
        logger.info(
            f"New feedback received from {record.personal_info.name} for "
            f"{record.visit_info.location_visited} - Sentiment: "
            f"{combined.sentiment if combined else 'unknown'}"
        )

        if self.alert_service and record.analytics.priority_level == "high":
            await self.alert_service.send_alert(record)

        return record

    async def reprocess(self, db: AsyncSession) -> ReprocessResult:
        """Fill in sentiment analysis for stored records that lack it.

        Records that already carry a combined sentiment are skipped. A record
        counts as updated once it has a combined analysis, so repeating the
        pass without new submissions updates nothing.
        """
        result = ReprocessResult()

        async with self._write_lock:
            records = [row.to_record() for row in await list_feedback(db)]
            logger.info(f"Reprocessing sentiment analysis for {len(records)} feedback entries")

            for index, record in enumerate(records, start=1):
                result.processed_count += 1
                combined = record.sentiment_analysis.combined_analysis
                if combined is not None and combined.sentiment:
                    continue

                try:
                    analysis, combined_text = await self.analyze_texts(
                        record.feedback.overall_experience,
                        record.feedback.suggestions
                    )
                    analytics = build_analytics(
                        analysis,
                        combined_text,
                        record.ratings.average_score
                    )
                    await update_feedback_analysis(db, record.id, analysis, analytics)
                except Exception as e:
                    await db.rollback()
                    logger.error(f"Error processing sentiment for feedback {index}: {e}")
                    continue

                if analysis.combined_analysis is not None:
                    result.updated_count += 1
                    logger.info(
                        f"Updated sentiment for feedback from {record.personal_info.name}: "
                        f"{analysis.combined_analysis.sentiment}"
                    )

        logger.info(
            f"Sentiment reprocessing complete: "
            f"{result.updated_count}/{result.processed_count} updated"
        )
        return result

    async def get_all_feedback(self, db: AsyncSession) -> List[FeedbackRecord]:
        """All feedback records in submission order."""
        return [row.to_record() for row in await list_feedback(db)]

    async def get_feedback_by_location(self, db: AsyncSession, location: str) -> List[FeedbackRecord]:
        return [row.to_record() for row in await list_feedback_by_location(db, location)]

    async def get_stats(self, db: AsyncSession) -> FeedbackStats:
        """Aggregate report, recomputed from the current store."""
        return compute_stats(await self.get_all_feedback(db))
