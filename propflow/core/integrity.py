"""
Content integrity gate.

Combines a sentiment classification of a listing's description with the
moderation findings for each of its images into a single PASS/FAIL verdict.
"""

from enum import Enum
from typing import Any, Mapping

from loguru import logger

POSITIVE = "POSITIVE"


class ValidationResult(str, Enum):
    """Verdict of the content integrity gate."""

    PASS = "PASS"
    FAIL = "FAIL"


def evaluate_content_integrity(bundle: Mapping[str, Any]) -> ValidationResult:
    """
    Evaluate a moderation bundle.

    Precedence:
        1. A sentiment other than POSITIVE fails the bundle.
        2. Images are scanned in input order; the first one carrying any
           moderation label fails the bundle.
        3. Otherwise the bundle passes.

    A malformed bundle (no ``contentSentiment`` object, or no
    ``imageModerations`` list when the sentiment is positive) raises instead
    of failing. Callers report that as an internal error, not as FAIL.

    Args:
        bundle: ``{"contentSentiment": {"Sentiment": ...},
                  "imageModerations": [{"ModerationLabels": [...]}, ...]}``

    Returns:
        ValidationResult.PASS or ValidationResult.FAIL

    Raises:
        KeyError, TypeError: If the bundle is malformed
    """
    sentiment = bundle["contentSentiment"]["Sentiment"]
    if sentiment != POSITIVE:
        logger.warning("Found offensive description", sentiment=sentiment)
        return ValidationResult.FAIL

    for index, moderation in enumerate(bundle["imageModerations"]):
        if len(moderation["ModerationLabels"]) > 0:
            logger.warning(f"Found offensive image at index {index}")
            return ValidationResult.FAIL

    logger.info("No offensive images found")
    return ValidationResult.PASS
