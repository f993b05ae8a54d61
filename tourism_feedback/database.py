"""Database connection and feedback store operations."""
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import config
from models import Base, Feedback, analysis_columns
from schemas import Analytics, SentimentAnalysis


# Create async engine
# StaticPool for SQLite to avoid threading issues
engine = create_async_engine(
    config.DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False
)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_db():
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """Dependency to get database session."""
    async with AsyncSessionLocal() as session:
        yield session


def get_db_session():
    """Get database session as context manager (for CLI usage).

    Returns:
        Async context manager for database session
    """
    return AsyncSessionLocal()


async def save_feedback(db: AsyncSession, feedback: Feedback) -> Feedback:
    """Append a feedback row to the store.

    Args:
        db: Database session
        feedback: Unsaved Feedback model

    Returns:
        Saved Feedback model
    """
    db.add(feedback)
    await db.commit()
    await db.refresh(feedback)

    return feedback


async def list_feedback(db: AsyncSession) -> List[Feedback]:
    """All feedback rows in insertion order."""
    result = await db.execute(
        select(Feedback)
        .order_by(Feedback.seq)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_feedback_by_location(db: AsyncSession, location: str) -> List[Feedback]:
    """Feedback rows whose location matches case-insensitively."""
    result = await db.execute(
        select(Feedback)
        .where(func.lower(Feedback.location_visited) == location.lower())
        .order_by(Feedback.seq)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_feedback_analysis(
    db: AsyncSession,
    feedback_id: str,
    analysis: SentimentAnalysis,
    analytics: Analytics
) -> None:
    """Overwrite the sentiment results and analytics of one feedback row."""
    await db.execute(
        update(Feedback)
        .where(Feedback.feedback_id == feedback_id)
        .values(**analysis_columns(analysis, analytics))
    )
    await db.commit()
