"""
Data models for the deployer.

Keep it simple. Keep it typed. Keep it working.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

# Upper bound for any single wait, in minutes (6 hours)
MAX_WAIT_MINUTES = 360
WAIT_DEFAULT_DELAY_SEC = 15
DEFAULT_WAIT_MINUTES = 30

DEFAULT_CLUSTER = "default"
ACTIVE_STATUS = "ACTIVE"


class ControllerKind(str, Enum):
    """Deployment controllers known to ECS."""

    ECS = "ECS"
    CODE_DEPLOY = "CODE_DEPLOY"


class ServiceDescriptor(BaseModel):
    """What we learned about the target service from DescribeServices."""

    service_name: str = Field(..., description="ECS service name")
    cluster: str = Field(DEFAULT_CLUSTER, description="Cluster the service runs in")
    status: Optional[str] = Field(None, description="Service status (ACTIVE, DRAINING, INACTIVE)")
    controller: Optional[str] = Field(
        None, description="Explicit deployment controller type, None when absent"
    )
    service_arn: Optional[str] = Field(None, description="Full service ARN")

    @property
    def is_active(self) -> bool:
        """Can this service receive a deployment?"""
        return self.status == ACTIVE_STATUS


class WaitBudget(BaseModel):
    """How long to poll before giving up."""

    minutes: int = Field(..., ge=0, description="Wait time, clamped to MAX_WAIT_MINUTES")
    delay_seconds: int = Field(WAIT_DEFAULT_DELAY_SEC, gt=0, description="Delay between polls")

    @field_validator("minutes")
    @classmethod
    def clamp_minutes(cls, value: int) -> int:
        return min(value, MAX_WAIT_MINUTES)

    @computed_field  # type: ignore[misc]
    @property
    def max_attempts(self) -> int:
        """Number of polls that fit in the budget."""
        return self.minutes * 60 // self.delay_seconds

    @classmethod
    def from_minutes(cls, *parts: int) -> "WaitBudget":
        """Sum several minute values into one clamped budget."""
        return cls(minutes=sum(parts))


class RunContext(BaseModel):
    """CI run metadata used in notifications and links."""

    repository: str = Field("", description="owner/repo")
    ref: str = Field("", description="Branch or tag ref that triggered the run")
    event_name: str = Field("", description="Triggering event (push, workflow_dispatch, ...)")
    sha: str = Field("", description="Commit SHA")
    run_id: str = Field("", description="Workflow run id")
    server_url: str = Field("https://github.com", description="Base URL of the git host")

    @property
    def commit_url(self) -> str:
        return f"{self.server_url}/{self.repository}/commit/{self.sha}"

    @property
    def checks_url(self) -> str:
        return f"{self.commit_url}/checks/?check_suite_id={self.run_id}"


class NotificationPayload(BaseModel):
    """Body POSTed to the Slack webhook."""

    blocks: List[Dict[str, Any]] = Field(default_factory=list)
    channel: Optional[str] = Field(None, description="Channel override")
    text: Optional[str] = Field(None, description="Fallback text shown in notifications")

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DeploymentState(str, Enum):
    """States of a single deployment run."""

    IDLE = "idle"
    NORMALIZING = "normalizing"
    REGISTERING = "registering"
    NO_SERVICE_SPECIFIED = "no_service_specified"
    INSPECTING = "inspecting"
    ROLLING_UPDATE = "rolling_update"
    BLUE_GREEN = "blue_green"
    UNSUPPORTED_CONTROLLER = "unsupported_controller"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DeploymentOutcome(BaseModel):
    """Result of one run, successful or not."""

    succeeded: bool = Field(False, description="Did the run complete without error?")
    state: DeploymentState = Field(DeploymentState.IDLE, description="Terminal state")
    task_definition_arn: Optional[str] = Field(None, description="Registered revision ARN")
    deployment_id: Optional[str] = Field(None, description="CodeDeploy deployment id, if any")
    controller: Optional[str] = Field(None, description="Controller used for the rollout")
    error: Optional[str] = Field(None, description="Message of the error that ended the run")
