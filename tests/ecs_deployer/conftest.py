"""
Shared fixtures for deployer tests.
"""

import json

import pytest
import yaml
from unittest.mock import AsyncMock

from ecs_deployer.config.settings import DeployerConfig
from ecs_deployer.deployment.waiter import StabilityWaiter
from ecs_deployer.models import RunContext

TASK_DEFINITION_ARN = "arn:aws:ecs:us-west-2:123456789012:task-definition/web:42"


@pytest.fixture
def task_definition():
    """Task definition as exported by DescribeTaskDefinition."""
    return {
        "family": "web",
        "taskDefinitionArn": "arn:aws:ecs:us-west-2:123456789012:task-definition/web:41",
        "revision": 41,
        "status": "ACTIVE",
        "compatibilities": ["EC2", "FARGATE"],
        "requiresAttributes": [{"name": "com.amazonaws.ecs.capability.docker-remote-api.1.18"}],
        "networkMode": "awsvpc",
        "cpu": "256",
        "memory": "512",
        "containerDefinitions": [
            {
                "name": "web",
                "image": "nginx:latest",
                "essential": True,
                "portMappings": [{"containerPort": 80, "hostPort": 80, "protocol": ""}],
                "environment": [],
                "mountPoints": [],
                "volumesFrom": None,
            }
        ],
        "volumes": [],
        "placementConstraints": [{}],
    }


@pytest.fixture
def appspec():
    """CodeDeploy AppSpec for an ECS service."""
    return {
        "version": 0.0,
        "Resources": [
            {
                "TargetService": {
                    "Type": "AWS::ECS::Service",
                    "Properties": {
                        "TaskDefinition": "<TASK_DEFINITION>",
                        "LoadBalancerInfo": {"ContainerName": "web", "ContainerPort": 80},
                    },
                }
            }
        ],
    }


@pytest.fixture
def workspace(tmp_path, task_definition, appspec):
    """Workspace holding a task definition and an AppSpec file."""
    (tmp_path / "task-definition.json").write_text(json.dumps(task_definition))
    (tmp_path / "appspec.yaml").write_text(yaml.safe_dump(appspec, sort_keys=False))
    return tmp_path


@pytest.fixture
def run_context():
    """CI run metadata."""
    return RunContext(
        repository="acme/web",
        ref="refs/heads/main",
        event_name="push",
        sha="0123456789abcdef",
        run_id="987654",
    )


@pytest.fixture
def make_config(workspace, run_context):
    """Factory for DeployerConfig rooted at the test workspace."""

    def factory(**overrides):
        data = {
            "task_definition": "task-definition.json",
            "service": "web",
            "cluster": "prod",
            "workspace": str(workspace),
            "context": run_context,
        }
        data.update(overrides)
        return DeployerConfig(**data)

    return factory


@pytest.fixture
def instant_waiter():
    """StabilityWaiter whose sleeps return immediately."""
    sleep = AsyncMock()
    waiter = StabilityWaiter(sleep=sleep)
    waiter.sleep_mock = sleep
    return waiter


@pytest.fixture
def task_definition_arn():
    """ARN the mocked ECS client returns on registration."""
    return TASK_DEFINITION_ARN
