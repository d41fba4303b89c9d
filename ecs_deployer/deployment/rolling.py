"""
In-place rolling update for services using the ECS deployment controller.
"""

import logging
from typing import Any, Optional

from ecs_deployer import aws
from ecs_deployer.deployment.waiter import SERVICES_STABLE, StabilityWaiter, services_stable_check
from ecs_deployer.errors import DeploymentError
from ecs_deployer.models import WaitBudget
from ecs_deployer.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


class RollingUpdateStrategy:
    """Points an ECS service at a new task definition revision."""

    def __init__(
        self,
        ecs_client: Any,
        waiter: Optional[StabilityWaiter] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ) -> None:
        self.ecs = ecs_client
        self.waiter = waiter or StabilityWaiter()
        self.notifier = notifier

    async def apply(
        self,
        cluster: str,
        service: str,
        task_definition_arn: str,
        wait: bool,
        wait_minutes: int,
    ) -> None:
        """
        Update the service and optionally wait for it to become stable.

        The update is not rolled back if waiting fails.

        Args:
            cluster: Cluster name
            service: Service name
            task_definition_arn: Revision to deploy
            wait: Wait for the service to become stable
            wait_minutes: How long to wait

        Raises:
            DeploymentError: UpdateService failed or the service did not stabilize
        """
        logger.debug("Updating the service")
        try:
            await aws.call(
                self.ecs.update_service,
                cluster=cluster,
                service=service,
                taskDefinition=task_definition_arn,
            )
        except aws.AWS_ERRORS as e:
            raise DeploymentError(
                f"Failed to update service {service}: {aws.error_message(e)}"
            ) from e

        console_url = aws.ecs_service_console_url(aws.client_region(self.ecs), cluster, service)
        logger.info(
            "Deployment started. Watch this deployment's progress in the Amazon ECS console: "
            f"{console_url}"
        )
        if self.notifier:
            self.notifier.deploy_started(console_url)

        if not wait:
            logger.debug("Not waiting for the service to become stable")
            return

        budget = WaitBudget(minutes=wait_minutes)
        logger.debug(
            f"Waiting for the service to become stable. Will wait for {budget.minutes} minutes"
        )
        await self.waiter.wait_for(
            SERVICES_STABLE,
            service,
            services_stable_check(self.ecs, cluster, service),
            delay_seconds=budget.delay_seconds,
            max_attempts=budget.max_attempts,
        )
        logger.info(f"Service {service} is stable")
