"""
Deployment orchestrator.

Registers a task definition revision, picks the rollout strategy from the
target service's deployment controller, runs it and reports the outcome.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from ecs_deployer import aws, outputs
from ecs_deployer.config.settings import DeployerConfig
from ecs_deployer.deployment.blue_green import BlueGreenStrategy
from ecs_deployer.deployment.inspector import ServiceInspector, select_strategy
from ecs_deployer.deployment.normalizer import normalize
from ecs_deployer.deployment.registrar import TaskRegistrar
from ecs_deployer.deployment.rolling import RollingUpdateStrategy
from ecs_deployer.deployment.waiter import StabilityWaiter
from ecs_deployer.errors import RegistrationError, UnsupportedControllerError
from ecs_deployer.files import load_structured_file_async
from ecs_deployer.models import ControllerKind, DeploymentOutcome, DeploymentState
from ecs_deployer.notifications import NotificationDispatcher
from ecs_deployer.utils.log_sanitizer import redact_url

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Runs one deployment from task definition file to terminal state."""

    def __init__(
        self,
        config: DeployerConfig,
        ecs_client: Any = None,
        codedeploy_client: Any = None,
        notifier: Optional[NotificationDispatcher] = None,
        waiter: Optional[StabilityWaiter] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Run configuration
            ecs_client: boto3 ECS client; created from the configured region
                when the run starts if omitted
            codedeploy_client: boto3 CodeDeploy client; created like ecs_client
            notifier: Lifecycle notifier, optional
            waiter: Stability waiter shared by both strategies
            environ: Environment used for action outputs, defaults to os.environ
        """
        self.config = config
        self.ecs = ecs_client
        self.codedeploy = codedeploy_client
        self.waiter = waiter or StabilityWaiter()
        self.environ = environ
        self.state = DeploymentState.IDLE

        # Decided once, before anything can fail
        self.notifier = notifier if notifier is not None and notifier.enabled else None
        if self.notifier:
            webhook = redact_url(self.notifier.webhook_url or "")
            logger.info(f"Slack notifications enabled ({webhook})")

    def _ensure_clients(self) -> None:
        """Create missing AWS clients from the configured region."""
        if self.ecs is not None and self.codedeploy is not None:
            return
        ecs, codedeploy = aws.create_clients(self.config.region)
        if self.ecs is None:
            self.ecs = ecs
        if self.codedeploy is None:
            self.codedeploy = codedeploy

    def _transition(self, state: DeploymentState) -> None:
        logger.debug(f"Deployment state: {self.state.value} -> {state.value}")
        self.state = state

    def rolling_strategy(self) -> RollingUpdateStrategy:
        return RollingUpdateStrategy(self.ecs, waiter=self.waiter, notifier=self.notifier)

    def blue_green_strategy(self) -> BlueGreenStrategy:
        return BlueGreenStrategy(
            self.codedeploy,
            appspec_path=self.config.resolve_path(self.config.codedeploy_appspec),
            application_name=self.config.codedeploy_application,
            deployment_group_name=self.config.codedeploy_deployment_group,
            waiter=self.waiter,
            notifier=self.notifier,
        )

    async def run(self, raw_task_definition: Optional[Dict[str, Any]] = None) -> DeploymentOutcome:
        """
        Execute the deployment.

        Never raises for deployment failures: the outcome carries the error
        message instead. Nothing already registered or submitted is rolled back.

        Args:
            raw_task_definition: Decoded task definition; read from the
                configured file when omitted

        Returns:
            DeploymentOutcome in SUCCEEDED or FAILED state
        """
        outcome = DeploymentOutcome()
        try:
            await self._deploy(outcome, raw_task_definition)
        except Exception as e:
            self._transition(DeploymentState.FAILED)
            deployment_id = getattr(e, "deployment_id", None)
            if deployment_id and not outcome.deployment_id:
                outcome.deployment_id = deployment_id
                outputs.set_output(outputs.CODEDEPLOY_DEPLOYMENT_ID, deployment_id, self.environ)
            outcome.state = DeploymentState.FAILED
            outcome.succeeded = False
            outcome.error = str(e)
            logger.error(str(e))
            logger.debug("Deployment failure details", exc_info=True)
            if self.notifier:
                self.notifier.deploy_failed(self.config.context.checks_url)
            return outcome

        self._transition(DeploymentState.SUCCEEDED)
        outcome.state = DeploymentState.SUCCEEDED
        outcome.succeeded = True
        if self.notifier:
            self.notifier.deploy_succeeded(self.config.context.checks_url)
        return outcome

    async def _deploy(
        self, outcome: DeploymentOutcome, raw_task_definition: Optional[Dict[str, Any]]
    ) -> None:
        config = self.config

        self._ensure_clients()

        self._transition(DeploymentState.NORMALIZING)
        if raw_task_definition is None:
            raw_task_definition = await load_structured_file_async(
                config.resolve_path(config.task_definition)
            )
        task_definition = normalize(raw_task_definition)

        self._transition(DeploymentState.REGISTERING)
        try:
            task_definition_arn = await TaskRegistrar(self.ecs).register(task_definition)
        except RegistrationError:
            logger.debug("Task definition contents:")
            logger.debug(json.dumps(task_definition, indent=4, default=str))
            raise
        outcome.task_definition_arn = task_definition_arn
        outputs.set_output(outputs.TASK_DEFINITION_ARN, task_definition_arn, self.environ)

        if not config.service:
            self._transition(DeploymentState.NO_SERVICE_SPECIFIED)
            logger.debug("Service was not specified, no service updated")
            return

        self._transition(DeploymentState.INSPECTING)
        descriptor = await ServiceInspector(self.ecs).inspect(config.cluster, config.service)
        outcome.controller = descriptor.controller or ControllerKind.ECS.value

        try:
            kind = select_strategy(descriptor)
        except UnsupportedControllerError:
            self._transition(DeploymentState.UNSUPPORTED_CONTROLLER)
            raise

        if kind == ControllerKind.ECS:
            self._transition(DeploymentState.ROLLING_UPDATE)
            await self.rolling_strategy().apply(
                config.cluster,
                config.service,
                task_definition_arn,
                config.wait_for_service_stability,
                config.wait_for_minutes,
            )
        else:
            self._transition(DeploymentState.BLUE_GREEN)
            deployment_id = await self.blue_green_strategy().apply(
                config.cluster,
                config.service,
                task_definition_arn,
                config.wait_for_service_stability,
                config.wait_for_minutes,
            )
            outcome.deployment_id = deployment_id
            outputs.set_output(outputs.CODEDEPLOY_DEPLOYMENT_ID, deployment_id, self.environ)
