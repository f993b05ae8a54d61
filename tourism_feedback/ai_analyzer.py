"""LLM-backed sentiment classifier for visitor feedback."""
import asyncio
import json
import logging
from collections import Counter
from typing import List, Optional, Sequence

from openai import AsyncOpenAI
from pydantic import ValidationError

from config import config
from schemas import ModelSentimentPayload, SentimentResult, SentimentSummary

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert sentiment analysis AI. Provide accurate, detailed "
    "sentiment analysis in the exact JSON format requested."
)


def extract_json_object(response_text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring of the response.

    Braces inside JSON string literals do not count towards the depth.
    Returns None when there is no opening brace or it is never closed.
    """
    start = response_text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(response_text)):
        char = response_text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return response_text[start:index + 1]

    return None


class AISentimentAnalyzer:
    """Classifies feedback text with an OpenAI-compatible chat model.

    ``classify`` never raises: network errors, timeouts and unparsable answers
    all degrade to a neutral result with zero confidence.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        """Initialize the analyzer.

        Args:
            client: Pre-built client; by default one is created from config
                when an API key is available
        """
        if client is None and config.AI_API_KEY:
            client = AsyncOpenAI(
                api_key=config.AI_API_KEY,
                base_url=config.AI_BASE_URL,
                timeout=config.AI_TIMEOUT_SECONDS,
                max_retries=0
            )
        self.client = client
        self.model = config.AI_MODEL
        self.timeout = config.AI_TIMEOUT_SECONDS

    def _build_prompt(self, text: str, include_emotions: bool) -> str:
        """Build the classification prompt for one text."""
        emotion_instruction = (
            '\n    "emotions": ["happy", "frustrated", "excited"],'
            if include_emotions else ""
        )

        return f"""
Analyze the sentiment of this feedback text and respond with ONLY a JSON object in this exact format:

{{
    "sentiment": "positive|negative|neutral",
    "confidence": 0.95,
    "key_phrases": ["phrase1", "phrase2"],{emotion_instruction}
    "reasoning": "Brief explanation of the analysis"
}}

Feedback text to analyze:
"{text}"

Rules:
- sentiment must be exactly one of: positive, negative, neutral
- confidence should be between 0.0 and 1.0
- key_phrases should be the most important words/phrases that influenced the sentiment
- emotions should be common emotion words (if requested)
- Keep reasoning brief and factual
- Respond with ONLY the JSON object, no other text
"""

    async def classify(self, text: str, include_emotions: bool = True) -> SentimentResult:
        """Classify the sentiment of a text.

        Args:
            text: Feedback text to classify
            include_emotions: Whether to ask the model for emotion labels

        Returns:
            SentimentResult; the fallback result if classification failed
        """
        if not self.client:
            logger.warning("Sentiment client not configured, returning fallback result")
            return self._fallback_result(text)

        prompt = self._build_prompt(text, include_emotions)

        try:
            async with asyncio.timeout(self.timeout):
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt}
                    ],
                    temperature=config.AI_TEMPERATURE,
                    max_tokens=config.AI_MAX_TOKENS,
                    top_p=config.AI_TOP_P
                )
            response_text = response.choices[0].message.content or ""

        except TimeoutError:
            logger.error(f"Sentiment analysis timed out after {self.timeout}s")
            return self._fallback_result(text)
        except Exception as e:
            logger.error(f"Error analyzing sentiment: {e}")
            return self._fallback_result(text)

        return self._parse_ai_response(text, response_text)

    async def classify_batch(self, texts: Sequence[str]) -> List[SentimentResult]:
        """Classify texts one after another, preserving input order."""
        results = []
        for text in texts:
            results.append(await self.classify(text))
        return results

    def _parse_ai_response(self, original_text: str, response_text: str) -> SentimentResult:
        """Turn the raw model answer into a SentimentResult.

        Handles common LLM output issues:
        - Extra text or markdown fences around the JSON
        - Missing fields (defaulted)
        - Unknown sentiment labels and unparsable confidence values
        """
        json_text = extract_json_object(response_text)
        if json_text is None:
            logger.error("Error parsing response: no JSON found in response")
            return self._fallback_result(original_text)

        try:
            data = json.loads(json_text)
            payload = ModelSentimentPayload.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Error parsing response: {e}")
            return self._fallback_result(original_text)

        return SentimentResult(
            text=original_text,
            sentiment=payload.sentiment,
            confidence=payload.confidence,
            emotions=payload.emotions,
            key_phrases=payload.key_phrases
        )

    @staticmethod
    def _fallback_result(text: str) -> SentimentResult:
        return SentimentResult(
            text=text,
            sentiment="neutral",
            confidence=0.0,
            emotions=[],
            key_phrases=[]
        )

    @staticmethod
    def summarize(results: Sequence[SentimentResult]) -> Optional[SentimentSummary]:
        """Compute summary statistics over a batch of results.

        Returns:
            SentimentSummary, or None for an empty batch
        """
        if not results:
            return None

        total = len(results)
        counts = Counter(result.sentiment for result in results)
        emotion_counts = Counter(
            emotion for result in results for emotion in result.emotions
        )

        return SentimentSummary(
            total_feedback=total,
            positive=counts["positive"] / total * 100,
            negative=counts["negative"] / total * 100,
            neutral=counts["neutral"] / total * 100,
            average_confidence=sum(result.confidence for result in results) / total,
            most_common_emotions=[emotion for emotion, _ in emotion_counts.most_common(5)]
        )
