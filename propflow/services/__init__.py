"""Clients for external services: moderation and workflow task tokens."""

from propflow.services.moderation import (
    AWSModerationService,
    KeywordModerationService,
    ModerationError,
    ModerationService,
)
from propflow.services.tokens import StepFunctionsTaskTokens, TaskTokenService

__all__ = [
    "AWSModerationService",
    "KeywordModerationService",
    "ModerationError",
    "ModerationService",
    "StepFunctionsTaskTokens",
    "TaskTokenService",
]
