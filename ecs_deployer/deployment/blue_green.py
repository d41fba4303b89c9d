"""
Blue/green deployment through CodeDeploy, for services using the
CODE_DEPLOY deployment controller.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ecs_deployer import aws
from ecs_deployer.deployment.appspec import patch_task_definition, render_appspec
from ecs_deployer.deployment.waiter import (
    DEPLOYMENT_SUCCESSFUL,
    StabilityWaiter,
    deployment_successful_check,
)
from ecs_deployer.errors import (
    AppSpecError,
    ConfigurationError,
    DeploymentError,
    DeploymentSubmitError,
)
from ecs_deployer.files import load_structured_file_async
from ecs_deployer.models import WaitBudget
from ecs_deployer.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


def default_application_name(cluster: str, service: str) -> str:
    return f"App-{cluster}-{service}"


def default_deployment_group_name(cluster: str, service: str) -> str:
    return f"Dgp-{cluster}-{service}"


def blue_green_wait_minutes(deployment_group: Dict[str, Any]) -> int:
    """
    Minutes CodeDeploy itself may spend before reporting success.

    Sum of the deployment-ready wait and the wait before terminating the old
    (blue) tasks. Missing settings count as zero.
    """
    config = deployment_group.get("blueGreenDeploymentConfiguration") or {}
    ready = (config.get("deploymentReadyOption") or {}).get("waitTimeInMinutes") or 0
    termination = (config.get("terminateBlueInstancesOnDeploymentSuccess") or {}).get(
        "terminationWaitTimeInMinutes"
    ) or 0
    return int(ready) + int(termination)


class BlueGreenStrategy:
    """Starts CodeDeploy deployments from an AppSpec file."""

    def __init__(
        self,
        codedeploy_client: Any,
        appspec_path: Path,
        application_name: Optional[str] = None,
        deployment_group_name: Optional[str] = None,
        waiter: Optional[StabilityWaiter] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ) -> None:
        """
        Initialize the strategy.

        Args:
            codedeploy_client: boto3 CodeDeploy client
            appspec_path: Resolved path of the AppSpec file
            application_name: CodeDeploy application, defaults to App-<cluster>-<service>
            deployment_group_name: Deployment group, defaults to Dgp-<cluster>-<service>
            waiter: Shared stability waiter
            notifier: Lifecycle notifier
        """
        self.codedeploy = codedeploy_client
        self.appspec_path = appspec_path
        self.application_name = application_name
        self.deployment_group_name = deployment_group_name
        self.waiter = waiter or StabilityWaiter()
        self.notifier = notifier

    async def apply(
        self,
        cluster: str,
        service: str,
        task_definition_arn: str,
        wait: bool,
        wait_minutes: int,
    ) -> str:
        """
        Patch the AppSpec with the new revision and start a deployment.

        Args:
            cluster: Cluster name
            service: Service name
            task_definition_arn: Revision to deploy
            wait: Wait for the deployment to succeed
            wait_minutes: Extra minutes on top of the deployment group's own waits

        Returns:
            CodeDeploy deployment id

        Raises:
            AppSpecError: the AppSpec file is missing, unparsable or malformed;
                ManifestFieldMissingError when a required property is absent
            DeploymentSubmitError: CodeDeploy rejected the deployment
            DeploymentError: any other failure; carries deployment_id once assigned
        """
        application = self.application_name or default_application_name(cluster, service)
        group = self.deployment_group_name or default_deployment_group_name(cluster, service)

        deployment_group = await self._get_deployment_group(application, group)

        logger.debug("Updating AppSpec file with new task definition ARN")
        try:
            appspec = await load_structured_file_async(self.appspec_path)
        except ConfigurationError as e:
            raise AppSpecError(str(e)) from e
        if not isinstance(appspec, dict):
            raise AppSpecError(f"{self.appspec_path} must contain a mapping")
        patched = patch_task_definition(appspec, task_definition_arn)
        logger.debug(f"Patched AppSpec resources: {', '.join(patched) or 'none'}")
        revision = render_appspec(appspec)

        logger.debug("Starting CodeDeploy deployment")
        try:
            response = await aws.call(
                self.codedeploy.create_deployment,
                applicationName=application,
                deploymentGroupName=group,
                revision={
                    "revisionType": "AppSpecContent",
                    "appSpecContent": {
                        "content": revision.content,
                        "sha256": revision.sha256,
                    },
                },
            )
        except aws.AWS_ERRORS as e:
            raise DeploymentSubmitError(
                f"Failed to create CodeDeploy deployment for {application}/{group}: "
                f"{aws.error_message(e)}"
            ) from e

        deployment_id = str(response["deploymentId"])
        console_url = aws.codedeploy_console_url(aws.client_region(self.codedeploy), deployment_id)
        logger.info(
            "Deployment started. Watch this deployment's progress in the AWS CodeDeploy "
            f"console: {console_url}"
        )
        if self.notifier:
            self.notifier.deploy_started(console_url)

        if not wait:
            logger.debug("Not waiting for the deployment to complete")
            return deployment_id

        budget = WaitBudget.from_minutes(blue_green_wait_minutes(deployment_group), wait_minutes)
        logger.debug(
            f"Waiting for the deployment to complete. Will wait for {budget.minutes} minutes"
        )
        try:
            await self.waiter.wait_for(
                DEPLOYMENT_SUCCESSFUL,
                deployment_id,
                deployment_successful_check(self.codedeploy, deployment_id),
                delay_seconds=budget.delay_seconds,
                max_attempts=budget.max_attempts,
            )
        except DeploymentError as e:
            e.deployment_id = deployment_id
            raise

        logger.info(f"Deployment {deployment_id} succeeded")
        return deployment_id

    async def _get_deployment_group(self, application: str, group: str) -> Dict[str, Any]:
        try:
            response = await aws.call(
                self.codedeploy.get_deployment_group,
                applicationName=application,
                deploymentGroupName=group,
            )
        except aws.AWS_ERRORS as e:
            raise DeploymentError(
                f"Failed to get deployment group {group} of application {application}: "
                f"{aws.error_message(e)}"
            ) from e
        return response.get("deploymentGroupInfo") or {}
