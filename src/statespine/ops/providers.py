"""
Workflow provider selection.

Requests name their provider loosely (``aws``, ``step-functions``,
``gcp-workflows``...).  ``WorkflowProvider.from_value`` folds the aliases
into one enum member, or ``None`` for names nobody recognises.
"""

from __future__ import annotations

from enum import Enum

UNSUPPORTED_PROVIDER_MESSAGE = "Unsupported workflow provider"
GCP_NOT_CONFIGURED_MESSAGE = "GCP workflows are not configured in this deployment"


class WorkflowProvider(str, Enum):
    AWS_STEP_FUNCTIONS = "aws_stepfunctions"
    GCP_WORKFLOWS = "gcp_workflows"

    @classmethod
    def from_value(cls, value: str | None) -> WorkflowProvider | None:
        """Resolve an alias; blank means AWS Step Functions."""
        if value is None or not value.strip():
            return cls.AWS_STEP_FUNCTIONS
        return _ALIASES.get(value.strip().lower())


_ALIASES = {
    "aws": WorkflowProvider.AWS_STEP_FUNCTIONS,
    "aws-stepfunctions": WorkflowProvider.AWS_STEP_FUNCTIONS,
    "aws_stepfunctions": WorkflowProvider.AWS_STEP_FUNCTIONS,
    "stepfunctions": WorkflowProvider.AWS_STEP_FUNCTIONS,
    "step-functions": WorkflowProvider.AWS_STEP_FUNCTIONS,
    "gcp": WorkflowProvider.GCP_WORKFLOWS,
    "gcp-workflows": WorkflowProvider.GCP_WORKFLOWS,
    "gcp_workflows": WorkflowProvider.GCP_WORKFLOWS,
    "cloud-workflows": WorkflowProvider.GCP_WORKFLOWS,
    "cloud_workflows": WorkflowProvider.GCP_WORKFLOWS,
    "cloudworkflow": WorkflowProvider.GCP_WORKFLOWS,
    "cloud-workflow": WorkflowProvider.GCP_WORKFLOWS,
}


def unsupported_message(provider: WorkflowProvider | None) -> str:
    """User-facing reason a provider cannot be served."""
    if provider is WorkflowProvider.GCP_WORKFLOWS:
        return GCP_NOT_CONFIGURED_MESSAGE
    return UNSUPPORTED_PROVIDER_MESSAGE


__all__ = [
    "GCP_NOT_CONFIGURED_MESSAGE",
    "UNSUPPORTED_PROVIDER_MESSAGE",
    "WorkflowProvider",
    "unsupported_message",
]
