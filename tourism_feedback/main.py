"""FastAPI application for visitor feedback analytics."""
import logging
from contextlib import asynccontextmanager
from typing import List
from fastapi import FastAPI, Depends, HTTPException, Header, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config import config
from database import init_db, get_db
from schemas import (
    BatchSentimentRequest,
    FeedbackListResponse,
    FeedbackRequest,
    LocationFeedbackResponse,
    ReprocessResponse,
    SentimentRequest,
    SentimentResult,
    StatsResponse,
    SubmitFeedbackResponse,
)
from ai_analyzer import AISentimentAnalyzer
from alerting import AlertService
from feedback_service import FeedbackService, FeedbackValidationError

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize services
ai_analyzer = AISentimentAnalyzer()
alert_service = AlertService()
feedback_service = FeedbackService(
    ai_analyzer if config.AI_PROVIDER_ENABLED else None,
    alert_service
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Initializing database...")
    await init_db()
    if not config.AI_PROVIDER_ENABLED:
        logger.warning("AI provider disabled, feedback will be stored without sentiment analysis")
    logger.info("Application started successfully")
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Tourism Feedback Analytics API",
    description="Visitor feedback intake with AI sentiment analysis and recommendation scoring",
    version="1.0.0",
    lifespan=lifespan
)


async def verify_api_key(x_api_key: str = Header(...)) -> None:
    """Verify API key authentication for admin endpoints.

    Stand-in for the portal's auth service.
    """
    if x_api_key != config.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )


@app.post(
    "/api/feedback",
    response_model=SubmitFeedbackResponse,
    status_code=status.HTTP_201_CREATED
)
async def submit_feedback(
    request: FeedbackRequest,
    db: AsyncSession = Depends(get_db)
):
    """Submit visitor feedback.

    The free-text fields are classified by the LLM, ratings are averaged and
    the recommendation score and priority are stored with the record.
    Classification problems never fail the submission.
    """
    record = await feedback_service.submit(db, request)
    combined = record.sentiment_analysis.combined_analysis

    return SubmitFeedbackResponse(
        feedback_id=record.id,
        sentiment=combined.sentiment if combined else None,
        average_rating=record.ratings.average_score,
        recommendation_score=record.analytics.recommendation_score
    )


@app.get("/api/feedback", response_model=FeedbackListResponse)
async def get_all_feedback(
    db: AsyncSession = Depends(get_db),
    _: None = Depends(verify_api_key)
):
    """List all feedback in submission order."""
    feedback = await feedback_service.get_all_feedback(db)
    return FeedbackListResponse(total=len(feedback), feedback=feedback)


@app.get("/api/feedback/location/{location}", response_model=LocationFeedbackResponse)
async def get_feedback_by_location(
    location: str,
    db: AsyncSession = Depends(get_db),
    _: None = Depends(verify_api_key)
):
    """List feedback for one location (case-insensitive match)."""
    feedback = await feedback_service.get_feedback_by_location(db, location)
    return LocationFeedbackResponse(location=location, total=len(feedback), feedback=feedback)


@app.get("/api/feedback/stats", response_model=StatsResponse)
async def get_feedback_stats(
    db: AsyncSession = Depends(get_db),
    _: None = Depends(verify_api_key)
):
    """Aggregate statistics and insights, recomputed on every request."""
    stats = await feedback_service.get_stats(db)
    message = "No feedback available" if stats.total == 0 else None
    return StatsResponse(message=message, stats=stats)


@app.post("/api/feedback/reprocess-sentiment", response_model=ReprocessResponse)
async def reprocess_sentiment(
    db: AsyncSession = Depends(get_db),
    _: None = Depends(verify_api_key)
):
    """Run sentiment analysis for stored feedback that has none."""
    result = await feedback_service.reprocess(db)
    return ReprocessResponse(
        message=(
            f"Sentiment analysis reprocessed for {result.updated_count} "
            f"out of {result.processed_count} feedback entries"
        ),
        processed_count=result.processed_count,
        updated_count=result.updated_count
    )


@app.post("/api/sentiment", response_model=SentimentResult)
async def analyze_sentiment(
    request: SentimentRequest,
    _: None = Depends(verify_api_key)
):
    """Classify a single text."""
    return await ai_analyzer.classify(request.feedback, request.include_emotions)


@app.post("/api/sentiment/batch", response_model=List[SentimentResult])
async def analyze_sentiment_batch(
    request: BatchSentimentRequest,
    _: None = Depends(verify_api_key)
):
    """Classify several texts, one result per input in input order."""
    return await ai_analyzer.classify_batch(request.feedbacks)


@app.post("/api/sentiment/summary")
async def sentiment_summary(
    request: BatchSentimentRequest,
    _: None = Depends(verify_api_key)
):
    """Classify several texts and return summary statistics."""
    results = await ai_analyzer.classify_batch(request.feedbacks)
    summary = ai_analyzer.summarize(results)
    return summary.model_dump(mode="json") if summary else {}


@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns system status including AI availability.
    """
    ai_status = "healthy" if config.AI_PROVIDER_ENABLED and ai_analyzer.client else "degraded"

    return {
        "status": "healthy",
        "ai_provider": ai_status,
        "alerts_enabled": alert_service.enabled
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Tourism Feedback Analytics API",
        "version": "1.0.0",
        "endpoints": {
            "submit": "POST /api/feedback",
            "list": "GET /api/feedback",
            "byLocation": "GET /api/feedback/location/{location}",
            "stats": "GET /api/feedback/stats",
            "reprocess": "POST /api/feedback/reprocess-sentiment",
            "sentiment": "POST /api/sentiment",
            "sentimentBatch": "POST /api/sentiment/batch",
            "sentimentSummary": "POST /api/sentiment/summary",
            "health": "GET /health"
        }
    }


@app.exception_handler(FeedbackValidationError)
async def validation_exception_handler(request, exc: FeedbackValidationError):
    """Report invalid submissions with the offending fields."""
    logger.info(f"Rejected feedback submission: {exc.error} {exc.fields}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": exc.error, "message": exc.message, "fields": exc.fields}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower()
    )
