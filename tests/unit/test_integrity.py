"""Tests for the content integrity gate."""

import pytest

from propflow.core.integrity import ValidationResult, evaluate_content_integrity
from propflow.handlers.content_integrity_validator import ContentIntegrityValidatorHandler

CLEAN_IMAGE = {"ModerationLabels": []}
FLAGGED_IMAGE = {"ModerationLabels": [{"Name": "Explicit", "Confidence": 99.0}]}


def bundle(sentiment: str, *images: dict) -> dict:
    return {"contentSentiment": {"Sentiment": sentiment}, "imageModerations": list(images)}


class TestEvaluateContentIntegrity:
    """Tests for evaluate_content_integrity."""

    @pytest.mark.parametrize("images", [(), (CLEAN_IMAGE,), (CLEAN_IMAGE, CLEAN_IMAGE)])
    def test_positive_and_clean_passes(self, images):
        """Test a positive description with no flagged image passes."""
        assert evaluate_content_integrity(bundle("POSITIVE", *images)) == ValidationResult.PASS

    @pytest.mark.parametrize("sentiment", ["NEGATIVE", "NEUTRAL", "MIXED"])
    @pytest.mark.parametrize("images", [(), (CLEAN_IMAGE,), (FLAGGED_IMAGE,)])
    def test_non_positive_fails_regardless_of_images(self, sentiment, images):
        """Test any sentiment other than POSITIVE fails."""
        assert evaluate_content_integrity(bundle(sentiment, *images)) == ValidationResult.FAIL

    @pytest.mark.parametrize(
        "images",
        [(FLAGGED_IMAGE,), (CLEAN_IMAGE, FLAGGED_IMAGE), (FLAGGED_IMAGE, CLEAN_IMAGE)],
    )
    def test_positive_with_flagged_image_fails(self, images):
        """Test one labelled image fails a positive description."""
        assert evaluate_content_integrity(bundle("POSITIVE", *images)) == ValidationResult.FAIL

    def test_missing_sentiment_raises(self):
        """Test a bundle without contentSentiment raises instead of failing."""
        with pytest.raises(KeyError):
            evaluate_content_integrity({"imageModerations": []})

    def test_missing_image_moderations_raises_for_positive(self):
        with pytest.raises(KeyError):
            evaluate_content_integrity({"contentSentiment": {"Sentiment": "POSITIVE"}})

    @pytest.mark.parametrize("entry", [None, {}, {"ModerationLabels": None}])
    def test_malformed_image_entry_raises(self, entry):
        """Test an image result without a label list raises instead of passing."""
        with pytest.raises((KeyError, TypeError)):
            evaluate_content_integrity(bundle("POSITIVE", CLEAN_IMAGE, entry))

    def test_missing_image_moderations_ignored_for_negative(self):
        """Test the sentiment decides before images are looked at."""
        result = evaluate_content_integrity({"contentSentiment": {"Sentiment": "NEGATIVE"}})
        assert result == ValidationResult.FAIL


class TestContentIntegrityValidatorHandler:
    """Tests for the gate's task handler."""

    @pytest.mark.asyncio
    async def test_pass(self, services):
        handler = ContentIntegrityValidatorHandler(services)
        result = await handler.invoke(bundle("POSITIVE", CLEAN_IMAGE))
        assert result == {"statusCode": 200, "validation_result": "PASS"}

    @pytest.mark.asyncio
    async def test_fail(self, services):
        handler = ContentIntegrityValidatorHandler(services)
        result = await handler.invoke(bundle("POSITIVE", FLAGGED_IMAGE))
        assert result == {"statusCode": 200, "validation_result": "FAIL"}

    @pytest.mark.asyncio
    async def test_malformed_bundle_is_internal_error(self, services):
        """Test a bundle without a sentiment is a 500, not a FAIL."""
        handler = ContentIntegrityValidatorHandler(services)
        result = await handler.invoke({"imageModerations": [CLEAN_IMAGE]})

        assert result["statusCode"] == 500
        assert "validation_result" not in result
        assert "contentSentiment" in result["error"]

    @pytest.mark.asyncio
    async def test_null_image_result_is_internal_error(self, services):
        handler = ContentIntegrityValidatorHandler(services)
        result = await handler.invoke(
            {"contentSentiment": {"Sentiment": "POSITIVE"}, "imageModerations": [None]}
        )

        assert result["statusCode"] == 500
        assert "validation_result" not in result

    def test_sync_call(self, services):
        """Test the Lambda-style synchronous call."""
        handler = ContentIntegrityValidatorHandler(services)
        assert handler(bundle("POSITIVE"))["validation_result"] == "PASS"
