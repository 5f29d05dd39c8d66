"""Local rendition of the publication approval workflow."""

from propflow.workflow.approval import ApprovalStateMachine

__all__ = ["ApprovalStateMachine"]
