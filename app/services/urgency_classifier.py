"""
Urgency classifier adapters: OpenAI chat completion and offline VADER sentiment
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import openai
from openai import AsyncOpenAI
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from app.config import settings
from app.exceptions import ClassificationError, ConfigurationException
from app.logging_config import logger
from app.models import ClassificationResult, Urgency


class UrgencyClassifier(ABC):
    """Consumption contract for text-urgency services"""

    @abstractmethod
    async def classify(self, text: str) -> Optional[ClassificationResult]:
        """
        Classify complaint text

        Args:
            text: Extracted complaint text (may be empty)

        Returns:
            Classification result, or None when the text carries no urgency signal

        Raises:
            ClassificationError: If the backing service fails
        """


class OpenAIUrgencyClassifier(UrgencyClassifier):
    """Classifies urgency with an OpenAI chat model returning JSON"""

    SYSTEM_PROMPT = "You triage student complaints and respond only with valid JSON."

    PROMPT_TEMPLATE = """Rate how urgently the school must act on the complaint below.

Use exactly one of these labels:
- Critical: risk to someone's safety, health or wellbeing, harassment, violence, or an emergency
- High: serious harm or disruption that needs action within days
- Medium: a real problem that can wait for the normal process
- Low: minor inconvenience, suggestion, or general feedback

Respond with JSON only: {{"urgency": "<label>"}}

Complaint: {complaint_text}"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """
        Initialize OpenAI urgency classifier

        Args:
            api_key: OpenAI API key (uses settings if not provided)
            model: Chat model name (uses settings if not provided)
        """
        self.api_key = api_key or settings.OPENAI_API_KEY
        if not self.api_key:
            raise ConfigurationException("OpenAI API key is required")

        self.client = AsyncOpenAI(api_key=self.api_key)
        self.model = model or settings.URGENCY_MODEL
        self.max_tokens = 20
        self.temperature = 0.0
        self.total_tokens_used = 0

        logger.info(f"OpenAI urgency classifier initialized with {self.model}")

    async def classify(self, text: str) -> Optional[ClassificationResult]:
        if not text or not text.strip():
            return None

        prompt = self.PROMPT_TEMPLATE.format(complaint_text=text.strip())
        response = await self._call_openai_api(prompt)

        if response.usage:
            self.total_tokens_used += response.usage.total_tokens

        return self._parse_response(response)

    async def _call_openai_api(self, prompt: str) -> Any:
        try:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format={"type": "json_object"}
            )

        except openai.RateLimitError as e:
            logger.warning(f"OpenAI rate limit hit: {str(e)}")
            raise ClassificationError(f"Rate limited: {str(e)}") from e

        except openai.APIError as e:
            logger.error(f"OpenAI API error: {str(e)}")
            raise ClassificationError(f"API error: {str(e)}") from e

    def _parse_response(self, response: Any) -> Optional[ClassificationResult]:
        """
        Parse the model's JSON answer

        Returns:
            Classification result, or None when the answer has no usable label

        Raises:
            ClassificationError: If the content is not valid JSON
        """
        content = response.choices[0].message.content
        try:
            data = json.loads(content or "")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in OpenAI response: {str(e)}")
            raise ClassificationError(f"Invalid JSON response: {str(e)}") from e

        urgency = Urgency.parse(data.get("urgency")) if isinstance(data, dict) else None
        if urgency is None:
            logger.debug(f"No usable urgency label in response: {content}")
            return None
        return ClassificationResult(urgency=urgency)


class SentimentUrgencyClassifier(UrgencyClassifier):
    """Offline classifier: safety keywords plus VADER compound sentiment"""

    CRITICAL_KEYWORDS = (
        "harass", "assault", "abuse", "threat", "violence", "violent", "weapon",
        "suicid", "self-harm", "unsafe", "emergency", "injur", "bully", "stalk",
    )
    HIGH_KEYWORDS = (
        "urgent", "immediately", "asap", "danger", "discriminat", "leak",
        "broken", "sick", "no water", "no electricity", "deadline", "cheat",
    )

    def __init__(self, high_threshold: float = -0.6, medium_threshold: float = -0.2):
        """
        Initialize sentiment urgency classifier

        Args:
            high_threshold: Compound score at or below which text is High
            medium_threshold: Compound score at or below which text is Medium
        """
        self.analyzer = SentimentIntensityAnalyzer()
        self.high_threshold = high_threshold
        self.medium_threshold = medium_threshold
        logger.info(
            f"Sentiment urgency classifier initialized with thresholds "
            f"high={high_threshold}, medium={medium_threshold}"
        )

    def analyze(self, text: str) -> float:
        """Compound sentiment score (-1 to 1)"""
        return self.analyzer.polarity_scores(text)['compound']

    def label(self, text: str) -> Urgency:
        text_lower = text.lower()
        if any(keyword in text_lower for keyword in self.CRITICAL_KEYWORDS):
            return Urgency.CRITICAL
        if any(keyword in text_lower for keyword in self.HIGH_KEYWORDS):
            return Urgency.HIGH

        score = self.analyze(text)
        if score <= self.high_threshold:
            return Urgency.HIGH
        if score <= self.medium_threshold:
            return Urgency.MEDIUM
        return Urgency.LOW

    async def classify(self, text: str) -> Optional[ClassificationResult]:
        if not text or not text.strip():
            return None
        try:
            urgency = self.label(text)
        except Exception as e:
            raise ClassificationError(f"Sentiment analysis failed: {str(e)}") from e

        logger.debug(f"Sentiment urgency - Text length: {len(text)}, Urgency: {urgency.value}")
        return ClassificationResult(urgency=urgency)


def build_classifier(backend: Optional[str] = None) -> UrgencyClassifier:
    """
    Create the configured urgency classifier

    Args:
        backend: 'openai' or 'sentiment' (uses settings if not provided)
    """
    backend = (backend or settings.URGENCY_CLASSIFIER).lower()
    if backend == "openai":
        return OpenAIUrgencyClassifier()
    if backend == "sentiment":
        return SentimentUrgencyClassifier()
    raise ConfigurationException(f"Unknown urgency classifier backend: {backend}")
