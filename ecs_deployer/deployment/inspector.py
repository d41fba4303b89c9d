"""
Target service inspection.

Looks up the service that will receive the new revision and works out which
deployment controller it uses.
"""

import logging
from typing import Any

from ecs_deployer import aws
from ecs_deployer.errors import ServiceLookupError, ServiceStateError, UnsupportedControllerError
from ecs_deployer.models import ControllerKind, ServiceDescriptor

logger = logging.getLogger(__name__)


class ServiceInspector:
    """Describes ECS services."""

    def __init__(self, ecs_client: Any) -> None:
        self.ecs = ecs_client

    async def inspect(self, cluster: str, service_name: str) -> ServiceDescriptor:
        """
        Describe one service and validate it can be deployed to.

        Args:
            cluster: Cluster name
            service_name: Service name

        Returns:
            ServiceDescriptor with the resolved controller kind

        Raises:
            ServiceLookupError: DescribeServices reported a failure
            ServiceStateError: the service is not ACTIVE
        """
        try:
            response = await aws.call(
                self.ecs.describe_services, cluster=cluster, services=[service_name]
            )
        except aws.AWS_ERRORS as e:
            raise ServiceLookupError(aws.error_message(e)) from e

        failures = response.get("failures") or []
        if failures:
            failure = failures[0]
            raise ServiceLookupError(f"{failure.get('arn')} is {failure.get('reason')}")

        services = response.get("services") or []
        if not services:
            raise ServiceLookupError(f"{service_name} is MISSING")

        service = services[0]
        controller = service.get("deploymentController")
        descriptor = ServiceDescriptor(
            service_name=service_name,
            cluster=cluster,
            status=service.get("status"),
            controller=controller.get("type") if controller else None,
            service_arn=service.get("serviceArn"),
        )

        if not descriptor.is_active:
            raise ServiceStateError(descriptor.status)

        logger.debug(
            f"Service {service_name} in cluster {cluster} uses the "
            f"{descriptor.controller or ControllerKind.ECS.value} deployment controller"
        )
        return descriptor


def select_strategy(descriptor: ServiceDescriptor) -> ControllerKind:
    """
    Map a service's controller to the strategy that deploys it.

    A service without an explicit controller gets a rolling update and
    CODE_DEPLOY gets a blue/green deployment. Any other explicit value,
    including an explicit ECS, is rejected.
    """
    if descriptor.controller is None:
        return ControllerKind.ECS
    if descriptor.controller == ControllerKind.CODE_DEPLOY.value:
        return ControllerKind.CODE_DEPLOY
    raise UnsupportedControllerError(descriptor.controller)
