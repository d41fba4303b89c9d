"""
Tests for the deployment orchestrator.
"""

import logging

import httpx
import pytest
from botocore.exceptions import NoRegionError
from unittest.mock import AsyncMock, Mock, patch

from ecs_deployer.deployment.orchestrator import DeploymentOrchestrator
from ecs_deployer.models import DeploymentState
from ecs_deployer.notifications import NotificationDispatcher

CODE_DEPLOY_SERVICE = {
    "services": [
        {"serviceName": "web", "status": "ACTIVE", "deploymentController": {"type": "CODE_DEPLOY"}}
    ]
}


@pytest.fixture
def notifier():
    """Enabled notifier double."""
    mock = Mock()
    mock.enabled = True
    mock.webhook_url = "https://hooks.slack.com/services/T000/B000/secret"
    return mock


@pytest.fixture
def output_file(tmp_path):
    return tmp_path / "github_output"


@pytest.fixture
def make_orchestrator(make_config, ecs_client, codedeploy_client, instant_waiter, output_file):
    """Factory for orchestrators writing outputs to a temp file."""

    def factory(notifier=None, **config_overrides):
        return DeploymentOrchestrator(
            make_config(**config_overrides),
            ecs_client,
            codedeploy_client,
            notifier=notifier,
            waiter=instant_waiter,
            environ={"GITHUB_OUTPUT": str(output_file)},
        )

    return factory


def read_outputs(path):
    if not path.exists():
        return {}
    return dict(line.split("=", 1) for line in path.read_text().splitlines())


class TestRegistrationOnly:
    """Test runs without a target service."""

    @pytest.mark.asyncio
    async def test_no_service_registers_only(
        self, make_orchestrator, ecs_client, output_file, task_definition_arn
    ):
        orchestrator = make_orchestrator(service="")

        outcome = await orchestrator.run()

        assert outcome.succeeded is True
        assert outcome.state == DeploymentState.SUCCEEDED
        assert outcome.task_definition_arn == task_definition_arn
        assert outcome.controller is None
        ecs_client.describe_services.assert_not_called()
        ecs_client.update_service.assert_not_called()
        assert read_outputs(output_file) == {"task-definition-arn": task_definition_arn}

    @pytest.mark.asyncio
    async def test_registers_normalized_definition(self, make_orchestrator, ecs_client):
        orchestrator = make_orchestrator(service=None)

        await orchestrator.run()

        registered = ecs_client.register_task_definition.call_args.kwargs
        assert "taskDefinitionArn" not in registered
        assert "revision" not in registered
        assert "volumes" not in registered
        assert registered["family"] == "web"

    @pytest.mark.asyncio
    async def test_raw_definition_overrides_file(self, make_orchestrator, ecs_client):
        orchestrator = make_orchestrator(service=None, task_definition="missing.json")

        outcome = await orchestrator.run({"family": "api", "cpu": ""})

        assert outcome.succeeded is True
        ecs_client.register_task_definition.assert_called_once_with(family="api")

    @pytest.mark.asyncio
    async def test_missing_task_definition_file(self, make_orchestrator, ecs_client):
        orchestrator = make_orchestrator(task_definition="missing.json")

        outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.state == DeploymentState.FAILED
        assert "missing.json does not exist!" in outcome.error
        ecs_client.register_task_definition.assert_not_called()

    @pytest.mark.asyncio
    async def test_registration_failure_logs_definition(
        self, make_orchestrator, ecs_client, client_error, caplog
    ):
        ecs_client.register_task_definition.side_effect = client_error("Invalid family")
        orchestrator = make_orchestrator()

        with caplog.at_level(logging.DEBUG, logger="ecs_deployer.deployment.orchestrator"):
            outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.error == "Failed to register task definition in ECS: Invalid family"
        assert outcome.task_definition_arn is None
        messages = [record.getMessage() for record in caplog.records]
        assert "Task definition contents:" in messages
        assert any('"family": "web"' in message for message in messages)
        ecs_client.describe_services.assert_not_called()


class TestRollingPath:
    """Test services with the default controller."""

    @pytest.mark.asyncio
    async def test_rolling_update(
        self, make_orchestrator, ecs_client, codedeploy_client, notifier, task_definition_arn
    ):
        orchestrator = make_orchestrator(notifier=notifier)

        outcome = await orchestrator.run()

        assert outcome.succeeded is True
        assert outcome.controller == "ECS"
        assert outcome.deployment_id is None
        ecs_client.update_service.assert_called_once_with(
            cluster="prod", service="web", taskDefinition=task_definition_arn
        )
        codedeploy_client.create_deployment.assert_not_called()
        notifier.deploy_started.assert_called_once()
        notifier.deploy_succeeded.assert_called_once_with(
            "https://github.com/acme/web/commit/0123456789abcdef/checks/?check_suite_id=987654"
        )
        notifier.deploy_failed.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_service_fails(self, make_orchestrator, ecs_client, notifier):
        ecs_client.describe_services.return_value = {"services": [{"status": "INACTIVE"}]}
        orchestrator = make_orchestrator(notifier=notifier)

        outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.error == "Service is INACTIVE"
        ecs_client.update_service.assert_not_called()
        notifier.deploy_started.assert_not_called()
        notifier.deploy_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_stability_timeout_fails_run(self, make_orchestrator, ecs_client):
        ecs_client.describe_services.side_effect = [
            {"services": [{"status": "ACTIVE"}]},
        ] + [{"services": [{"status": "ACTIVE", "deployments": [{}, {}]}]}] * 4
        orchestrator = make_orchestrator(wait_for_service_stability="true", wait_for_minutes=1)

        outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.state == DeploymentState.FAILED
        assert "max attempts exceeded" in outcome.error
        # No rollback
        ecs_client.update_service.assert_called_once()


class TestBlueGreenPath:
    """Test services using the CODE_DEPLOY controller."""

    @pytest.mark.asyncio
    async def test_blue_green_deployment(
        self, make_orchestrator, ecs_client, codedeploy_client, output_file, task_definition_arn
    ):
        ecs_client.describe_services.return_value = CODE_DEPLOY_SERVICE
        orchestrator = make_orchestrator(
            codedeploy_application="web-app", codedeploy_deployment_group="web-dg"
        )

        outcome = await orchestrator.run()

        assert outcome.succeeded is True
        assert outcome.controller == "CODE_DEPLOY"
        assert outcome.deployment_id == "d-ABCDEF123"
        ecs_client.update_service.assert_not_called()
        kwargs = codedeploy_client.create_deployment.call_args.kwargs
        assert kwargs["applicationName"] == "web-app"
        assert kwargs["deploymentGroupName"] == "web-dg"
        assert read_outputs(output_file) == {
            "task-definition-arn": task_definition_arn,
            "codedeploy-deployment-id": "d-ABCDEF123",
        }

    @pytest.mark.asyncio
    async def test_failed_wait_still_reports_deployment_id(
        self, make_orchestrator, ecs_client, codedeploy_client, output_file
    ):
        ecs_client.describe_services.return_value = CODE_DEPLOY_SERVICE
        codedeploy_client.get_deployment.return_value = {
            "deploymentInfo": {"status": "Stopped"}
        }
        orchestrator = make_orchestrator(wait_for_service_stability=True)

        outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.deployment_id == "d-ABCDEF123"
        assert outcome.error.endswith("d-ABCDEF123: deployment is Stopped")
        assert read_outputs(output_file)["codedeploy-deployment-id"] == "d-ABCDEF123"

    @pytest.mark.asyncio
    async def test_missing_appspec(self, make_orchestrator, ecs_client, codedeploy_client):
        ecs_client.describe_services.return_value = CODE_DEPLOY_SERVICE
        orchestrator = make_orchestrator(codedeploy_appspec="deploy/appspec.yml")

        outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert "appspec.yml does not exist!" in outcome.error
        codedeploy_client.create_deployment.assert_not_called()


class TestClientCreation:
    """Test AWS clients created by the run itself."""

    @pytest.mark.asyncio
    async def test_clients_created_from_region(
        self, make_config, ecs_client, codedeploy_client, instant_waiter, task_definition_arn
    ):
        orchestrator = DeploymentOrchestrator(
            make_config(service="", region="eu-west-1"), waiter=instant_waiter, environ={}
        )

        with patch(
            "ecs_deployer.aws.create_clients", return_value=(ecs_client, codedeploy_client)
        ) as create_clients:
            outcome = await orchestrator.run()

        assert outcome.succeeded is True
        assert outcome.task_definition_arn == task_definition_arn
        create_clients.assert_called_once_with("eu-west-1")

    @pytest.mark.asyncio
    async def test_missing_region_fails_run_and_notifies(
        self, make_config, instant_waiter, notifier
    ):
        orchestrator = DeploymentOrchestrator(
            make_config(), notifier=notifier, waiter=instant_waiter, environ={}
        )

        with patch("ecs_deployer.aws.create_clients", side_effect=NoRegionError()):
            outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.state == DeploymentState.FAILED
        assert "You must specify a region" in outcome.error
        notifier.deploy_failed.assert_called_once()
        notifier.deploy_succeeded.assert_not_called()


class TestUnsupportedController:
    """Test services with controllers we cannot deploy to."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("controller", ["EXTERNAL", "ECS"])
    async def test_explicit_controller_rejected(
        self, make_orchestrator, ecs_client, codedeploy_client, notifier, controller
    ):
        ecs_client.describe_services.return_value = {
            "services": [{"status": "ACTIVE", "deploymentController": {"type": controller}}]
        }
        orchestrator = make_orchestrator(notifier=notifier)

        outcome = await orchestrator.run()

        assert outcome.succeeded is False
        assert outcome.state == DeploymentState.FAILED
        assert outcome.error == f"Unsupported deployment controller: {controller}"
        assert outcome.controller == controller
        ecs_client.update_service.assert_not_called()
        codedeploy_client.create_deployment.assert_not_called()
        notifier.deploy_failed.assert_called_once()


class TestNotifications:
    """Test notifier wiring."""

    def test_disabled_notifier_dropped(self, make_orchestrator, notifier):
        notifier.enabled = False
        orchestrator = make_orchestrator(notifier=notifier)
        assert orchestrator.notifier is None

    def test_enabled_notifier_logged_without_secret(self, make_orchestrator, notifier, caplog):
        with caplog.at_level(logging.INFO, logger="ecs_deployer.deployment.orchestrator"):
            make_orchestrator(notifier=notifier)

        text = caplog.text
        assert "https://hooks.slack.com/..." in text
        assert "secret" not in text

    @pytest.mark.asyncio
    async def test_unreachable_webhook_does_not_change_outcome(
        self, make_orchestrator, run_context
    ):
        client = Mock()
        client.post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        client.aclose = AsyncMock()
        dispatcher = NotificationDispatcher(
            "https://hooks.slack.com/services/T000/B000/secret", run_context, client=client
        )
        orchestrator = make_orchestrator(notifier=dispatcher)

        outcome = await orchestrator.run()
        await dispatcher.drain(timeout=1.0)

        assert outcome.succeeded is True
        assert client.post.await_count == 2
        assert dispatcher.pending == 0
