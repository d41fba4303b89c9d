"""
Pytest configuration and fixtures for ecs-deployer tests.
"""

import os
import pytest
from unittest.mock import Mock

from botocore.exceptions import ClientError


def pytest_configure(config):
    """
    Keep tests independent of the machine they run on.
    This runs very early in the pytest lifecycle.
    """
    for name in ("GITHUB_OUTPUT", "GITHUB_ACTIONS", "GITHUB_WORKSPACE"):
        os.environ.pop(name, None)
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")


def make_client_error(message: str, code: str = "ClientException", operation: str = "Operation"):
    """Build a botocore ClientError the way boto3 raises it."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@pytest.fixture
def client_error():
    """Factory for botocore ClientErrors."""
    return make_client_error


@pytest.fixture
def ecs_client():
    """Mock ECS client bound to us-west-2."""
    client = Mock()
    client.meta.region_name = "us-west-2"
    client.register_task_definition = Mock(
        return_value={
            "taskDefinition": {
                "taskDefinitionArn": "arn:aws:ecs:us-west-2:123456789012:task-definition/web:42"
            }
        }
    )
    client.describe_services = Mock(
        return_value={"services": [{"serviceName": "web", "status": "ACTIVE"}], "failures": []}
    )
    client.update_service = Mock(return_value={"service": {"serviceName": "web"}})
    return client


@pytest.fixture
def codedeploy_client():
    """Mock CodeDeploy client bound to us-west-2."""
    client = Mock()
    client.meta.region_name = "us-west-2"
    client.get_deployment_group = Mock(
        return_value={
            "deploymentGroupInfo": {
                "blueGreenDeploymentConfiguration": {
                    "deploymentReadyOption": {"waitTimeInMinutes": 10},
                    "terminateBlueInstancesOnDeploymentSuccess": {
                        "terminationWaitTimeInMinutes": 5
                    },
                }
            }
        }
    )
    client.create_deployment = Mock(return_value={"deploymentId": "d-ABCDEF123"})
    client.get_deployment = Mock(return_value={"deploymentInfo": {"status": "Succeeded"}})
    return client
