"""Alerting for high-priority visitor feedback."""
import logging
import httpx
from config import config
from schemas import FeedbackRecord

logger = logging.getLogger(__name__)


class AlertService:
    """Posts a webhook notification when feedback needs follow-up.

    Only records with priority level ``high`` raise an alert. Without a
    webhook URL the alert is written to the log instead.
    """

    def __init__(self):
        """Initialize alert service."""
        self.webhook_url = config.ALERT_WEBHOOK_URL
        self.enabled = config.ALERT_ENABLED

    async def send_alert(self, record: FeedbackRecord) -> bool:
        """Send alert for a high-priority feedback record.

        Args:
            record: Stored feedback record

        Returns:
            True if the alert was sent (or logged), False otherwise
        """
        if record.analytics.priority_level != "high":
            return False

        if not self.enabled:
            logger.info(
                f"Alert would be sent for feedback {record.id} "
                f"(alerting disabled in config)"
            )
            return True

        try:
            if self.webhook_url:
                await self._send_webhook(self._build_alert_payload(record))
            else:
                logger.warning(
                    f"ALERT: Feedback #{record.id} for {record.visit_info.location_visited} "
                    f"requires attention - average rating {record.ratings.average_score}"
                )

            return True

        except Exception as e:
            logger.error(f"Failed to send alert for feedback {record.id}: {e}")
            return False

    def _build_alert_payload(self, record: FeedbackRecord) -> dict:
        """Build a Slack-compatible alert payload."""
        combined = record.sentiment_analysis.combined_analysis
        sentiment = combined.sentiment if combined else "not analyzed"

        return {
            "text": f"High priority feedback for {record.visit_info.location_visited}",
            "blocks": [
                {
                    "type": "header",
                    "text": {
                        "type": "plain_text",
                        "text": "High Priority Visitor Feedback"
                    }
                },
                {
                    "type": "section",
                    "fields": [
                        {
                            "type": "mrkdwn",
                            "text": f"*Feedback ID:*\n{record.id}"
                        },
                        {
                            "type": "mrkdwn",
                            "text": f"*Location:*\n{record.visit_info.location_visited}"
                        },
                        {
                            "type": "mrkdwn",
                            "text": f"*Sentiment:*\n{sentiment}"
                        },
                        {
                            "type": "mrkdwn",
                            "text": f"*Average rating:*\n{record.ratings.average_score}/4"
                        },
                        {
                            "type": "mrkdwn",
                            "text": f"*Recommendation score:*\n{record.analytics.recommendation_score}"
                        }
                    ]
                },
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": f"*Overall experience:*\n{record.feedback.overall_experience[:500]}"
                    }
                }
            ]
        }

    async def _send_webhook(self, payload: dict) -> None:
        """Send webhook notification.

        Raises:
            httpx.HTTPError: If webhook delivery fails
        """
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.post(
                self.webhook_url,
                json=payload
            )
            response.raise_for_status()
            logger.info(f"Alert sent successfully to {self.webhook_url}")
