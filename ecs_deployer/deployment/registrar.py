"""
Task definition registration.
"""

import logging
from typing import Any, Dict

from ecs_deployer import aws
from ecs_deployer.errors import RegistrationError

logger = logging.getLogger(__name__)


class TaskRegistrar:
    """Registers task definitions with ECS. One attempt, no retries."""

    def __init__(self, ecs_client: Any) -> None:
        self.ecs = ecs_client

    async def register(self, task_definition: Dict[str, Any]) -> str:
        """
        Register a normalized task definition.

        Args:
            task_definition: Output of the normalizer

        Returns:
            ARN of the new task definition revision

        Raises:
            RegistrationError: ECS rejected the definition; the definition is
                attached to the error for diagnostics
        """
        logger.debug("Registering the task definition")
        try:
            response = await aws.call(self.ecs.register_task_definition, **task_definition)
        except aws.AWS_ERRORS as e:
            raise RegistrationError(aws.error_message(e), task_definition=task_definition) from e

        arn = response["taskDefinition"]["taskDefinitionArn"]
        logger.info(f"Registered task definition {arn}")
        return str(arn)
