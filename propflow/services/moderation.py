"""
Content moderation services used by the approval workflow.

Both services return responses in the shape of the AWS APIs they mirror:
Comprehend ``DetectSentiment`` and Rekognition ``DetectModerationLabels``.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Iterable

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from propflow.core.exceptions import PropFlowError

DEFAULT_BLOCKED_WORDS = frozenset(
    {"awful", "terrible", "horrible", "dirty", "broken", "scam", "hate"}
)


class ModerationError(PropFlowError):
    """A moderation backend failed."""

    error_code = "ModerationError"


class ModerationService(ABC):
    """Abstract base class for moderation services."""

    @abstractmethod
    async def detect_sentiment(self, text: str) -> dict[str, Any]:
        """
        Classify the sentiment of a listing description.

        Returns:
            ``{"Sentiment": ..., "SentimentScore": {...}}``
        """
        pass

    @abstractmethod
    async def detect_moderation_labels(self, image_key: str) -> dict[str, Any]:
        """
        Detect unsafe content in a listing image.

        Returns:
            ``{"ModerationLabels": [...]}``; an empty list means safe
        """
        pass


class AWSModerationService(ModerationService):
    """Comprehend and Rekognition backed moderation."""

    def __init__(
        self,
        images_bucket: str | None,
        language_code: str = "en",
        comprehend_client: Any = None,
        rekognition_client: Any = None,
        region: str | None = None,
    ) -> None:
        self.images_bucket = images_bucket
        self.language_code = language_code
        self.region = region
        self._comprehend = comprehend_client
        self._rekognition = rekognition_client

    @property
    def comprehend(self) -> Any:
        if self._comprehend is None:
            import boto3

            self._comprehend = boto3.client("comprehend", region_name=self.region)
        return self._comprehend

    @property
    def rekognition(self) -> Any:
        if self._rekognition is None:
            import boto3

            self._rekognition = boto3.client("rekognition", region_name=self.region)
        return self._rekognition

    async def detect_sentiment(self, text: str) -> dict[str, Any]:
        try:
            response = await asyncio.to_thread(
                self.comprehend.detect_sentiment, Text=text, LanguageCode=self.language_code
            )
        except (BotoCoreError, ClientError) as e:
            raise ModerationError(f"detect_sentiment failed: {e}") from e
        return {
            "Sentiment": response["Sentiment"],
            "SentimentScore": response.get("SentimentScore", {}),
        }

    async def detect_moderation_labels(self, image_key: str) -> dict[str, Any]:
        if not self.images_bucket:
            raise ModerationError("images_bucket is not configured")
        try:
            response = await asyncio.to_thread(
                self.rekognition.detect_moderation_labels,
                Image={"S3Object": {"Bucket": self.images_bucket, "Name": image_key}},
            )
        except (BotoCoreError, ClientError) as e:
            raise ModerationError(f"detect_moderation_labels failed for {image_key}: {e}") from e
        return {"ModerationLabels": response.get("ModerationLabels", [])}


class KeywordModerationService(ModerationService):
    """
    Deterministic moderation for the local runtime and tests.

    A description containing any blocked word is NEGATIVE, otherwise
    POSITIVE. Image keys in ``flagged_images`` get a single moderation label.

    Example:
        >>> moderation = KeywordModerationService(flagged_images={"bad.jpg"})
        >>> await moderation.detect_moderation_labels("bad.jpg")
        {'ModerationLabels': [{'Name': 'Explicit', 'Confidence': 99.0, 'ParentName': ''}]}
    """

    def __init__(
        self,
        blocked_words: Iterable[str] | None = None,
        flagged_images: Iterable[str] | None = None,
    ) -> None:
        words = DEFAULT_BLOCKED_WORDS if blocked_words is None else blocked_words
        self.blocked_words = {word.lower() for word in words}
        self.flagged_images = set(flagged_images or ())

    async def detect_sentiment(self, text: str) -> dict[str, Any]:
        tokens = {token.strip(".,;:!?\"'()").lower() for token in (text or "").split()}
        hits = tokens & self.blocked_words
        if hits:
            logger.debug(f"Blocked words in description: {sorted(hits)}")
            return {
                "Sentiment": "NEGATIVE",
                "SentimentScore": {"Positive": 0.01, "Negative": 0.97, "Neutral": 0.01, "Mixed": 0.01},
            }
        return {
            "Sentiment": "POSITIVE",
            "SentimentScore": {"Positive": 0.97, "Negative": 0.01, "Neutral": 0.01, "Mixed": 0.01},
        }

    async def detect_moderation_labels(self, image_key: str) -> dict[str, Any]:
        if image_key in self.flagged_images:
            return {
                "ModerationLabels": [{"Name": "Explicit", "Confidence": 99.0, "ParentName": ""}]
            }
        return {"ModerationLabels": []}
