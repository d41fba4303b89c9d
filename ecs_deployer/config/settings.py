"""
Configuration for the deployer.

Configuration comes either from GitHub Actions inputs (INPUT_* environment
variables) or from a YAML file.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ecs_deployer.errors import ConfigurationError
from ecs_deployer.files import resolve_workspace_path
from ecs_deployer.models import (
    DEFAULT_CLUSTER,
    DEFAULT_WAIT_MINUTES,
    MAX_WAIT_MINUTES,
    RunContext,
)

DEFAULT_APPSPEC = "appspec.yaml"


def get_input(name: str, environ: Mapping[str, str]) -> str:
    """
    Read an action input the way the runner exposes it.

    ``task-definition`` is found in ``INPUT_TASK-DEFINITION``.
    """
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    return environ.get(key, "").strip()


def parse_flag(value: Any) -> bool:
    """Only a case-insensitive "true" (or a real True) enables a flag."""
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def parse_wait_minutes(value: Any) -> int:
    """
    Parse the wait-for-minutes input.

    Leading digits are used ("45min" is 45); anything unparsable or not
    positive falls back to the default. The result never exceeds
    MAX_WAIT_MINUTES.
    """
    if isinstance(value, bool):
        minutes = 0
    elif isinstance(value, int):
        minutes = value
    else:
        match = re.match(r"\s*([+-]?\d+)", str(value or ""))
        minutes = int(match.group(1)) if match else 0

    if minutes <= 0:
        minutes = DEFAULT_WAIT_MINUTES
    return min(minutes, MAX_WAIT_MINUTES)


class SlackConfig(BaseModel):
    """Slack notification settings."""

    webhook_url: Optional[str] = Field(None, description="Incoming webhook URL")
    channel: Optional[str] = Field(None, description="Channel override")
    display_text: Optional[str] = Field(None, description="Fallback notification text")
    waiting_msg_blocks: Optional[str] = Field(None, description="JSON blocks for deploy start")
    success_msg_blocks: Optional[str] = Field(None, description="JSON blocks for success")
    failure_msg_blocks: Optional[str] = Field(None, description="JSON blocks for failure")
    default_blocks_language: str = Field("eng", description="Language of the default blocks")

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    @property
    def has_custom_blocks(self) -> bool:
        """Custom blocks are used only when all three files are given."""
        return bool(self.waiting_msg_blocks and self.success_msg_blocks and self.failure_msg_blocks)


class DeployerConfig(BaseModel):
    """Everything a deployment run needs to know."""

    task_definition: str = Field(..., description="Path to the task definition file")
    service: Optional[str] = Field(None, description="Service to update")
    cluster: str = Field(DEFAULT_CLUSTER, description="Cluster of the service")
    wait_for_service_stability: bool = Field(False, description="Wait for the rollout")
    wait_for_minutes: int = Field(DEFAULT_WAIT_MINUTES, description="Wait time in minutes")
    codedeploy_appspec: str = Field(DEFAULT_APPSPEC, description="AppSpec file path")
    codedeploy_application: Optional[str] = Field(None, description="CodeDeploy application")
    codedeploy_deployment_group: Optional[str] = Field(
        None, description="CodeDeploy deployment group"
    )
    region: Optional[str] = Field(None, description="AWS region")
    workspace: str = Field(default_factory=os.getcwd, description="Root for relative paths")
    slack: SlackConfig = Field(default_factory=SlackConfig)
    context: RunContext = Field(default_factory=RunContext)

    @field_validator("service", "codedeploy_application", "codedeploy_deployment_group", "region")
    @classmethod
    def empty_as_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @field_validator("cluster", mode="before")
    @classmethod
    def default_cluster(cls, value: Any) -> Any:
        return value or DEFAULT_CLUSTER

    @field_validator("codedeploy_appspec", mode="before")
    @classmethod
    def default_appspec(cls, value: Any) -> Any:
        return value or DEFAULT_APPSPEC

    @field_validator("wait_for_service_stability", mode="before")
    @classmethod
    def validate_flag(cls, value: Any) -> bool:
        return parse_flag(value)

    @field_validator("wait_for_minutes", mode="before")
    @classmethod
    def validate_wait_minutes(cls, value: Any) -> int:
        return parse_wait_minutes(value)

    def resolve_path(self, path: str) -> Path:
        return resolve_workspace_path(path, self.workspace)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DeployerConfig":
        """
        Build configuration from action inputs and the runner environment.

        Args:
            environ: Environment mapping, defaults to os.environ

        Returns:
            Validated configuration
        """
        env = os.environ if environ is None else environ
        task_definition = get_input("task-definition", env)
        if not task_definition:
            raise ConfigurationError("Input required and not supplied: task-definition")

        data: Dict[str, Any] = {
            "task_definition": task_definition,
            "service": get_input("service", env),
            "cluster": get_input("cluster", env),
            "wait_for_service_stability": get_input("wait-for-service-stability", env),
            "wait_for_minutes": get_input("wait-for-minutes", env),
            "codedeploy_appspec": get_input("codedeploy-appspec", env),
            "codedeploy_application": get_input("codedeploy-application", env),
            "codedeploy_deployment_group": get_input("codedeploy-deployment-group", env),
            "region": get_input("aws-region", env)
            or env.get("AWS_REGION")
            or env.get("AWS_DEFAULT_REGION"),
            "workspace": env.get("GITHUB_WORKSPACE") or os.getcwd(),
            "slack": {
                "webhook_url": get_input("slack-webhook-url", env) or None,
                "channel": get_input("slack-channel", env) or None,
                "display_text": get_input("slack-display-text", env) or None,
                "waiting_msg_blocks": get_input("slack-waiting-msg-blocks", env) or None,
                "success_msg_blocks": get_input("slack-success-msg-blocks", env) or None,
                "failure_msg_blocks": get_input("slack-failure-msg-blocks", env) or None,
                "default_blocks_language": get_input("slack-default-blocks-language", env)
                or "eng",
            },
            "context": run_context_from_env(env),
        }
        return cls(**data)

    @classmethod
    def from_file(cls, path: str) -> "DeployerConfig":
        """Load configuration from a YAML file."""
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
        data.setdefault("context", run_context_from_env(os.environ))
        return cls(**data)

    def save(self, path: str) -> None:
        """Write configuration to a YAML file."""
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(exclude={"context"})

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def run_context_from_env(environ: Mapping[str, str]) -> RunContext:
    """Collect CI run metadata from GITHUB_* variables."""
    return RunContext(
        repository=environ.get("GITHUB_REPOSITORY", ""),
        ref=environ.get("GITHUB_REF", ""),
        event_name=environ.get("GITHUB_EVENT_NAME", ""),
        sha=environ.get("GITHUB_SHA", ""),
        run_id=environ.get("GITHUB_RUN_ID", ""),
        server_url=environ.get("GITHUB_SERVER_URL") or "https://github.com",
    )
