"""
Bounded polling for rollout stability.

Both deployment strategies wait through StabilityWaiter so timeout arithmetic
and failure reporting are identical on every path.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, NamedTuple, Optional

from ecs_deployer import aws
from ecs_deployer.errors import DeploymentError, StabilityTimeoutError
from ecs_deployer.models import WAIT_DEFAULT_DELAY_SEC

logger = logging.getLogger(__name__)

SERVICES_STABLE = "services_stable"
DEPLOYMENT_SUCCESSFUL = "deployment_successful"

# Service statuses that can never become stable
SERVICE_FAILURE_STATUSES = ("MISSING", "DRAINING", "INACTIVE")
DEPLOYMENT_FAILURE_STATUSES = ("Failed", "Stopped")


class PollState(str, Enum):
    SUCCESS = "success"
    RETRY = "retry"
    FAILURE = "failure"


class PollResult(NamedTuple):
    state: PollState
    reason: str = ""


StatusCheck = Callable[[], Awaitable[PollResult]]


class StabilityWaiter:
    """Polls a status check at a fixed delay up to an attempt ceiling."""

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> None:
        self._sleep = sleep

    async def wait_for(
        self,
        condition: str,
        target: str,
        check: StatusCheck,
        delay_seconds: int = WAIT_DEFAULT_DELAY_SEC,
        max_attempts: int = 1,
    ) -> int:
        """
        Poll ``check`` until it reports success.

        The first poll happens immediately; later polls are ``delay_seconds``
        apart. At most ``max_attempts`` polls are made.

        Args:
            condition: Condition name used in logs and errors
            target: What is being waited on (service name, deployment id)
            check: Coroutine function returning a PollResult
            delay_seconds: Delay between polls
            max_attempts: Poll ceiling

        Returns:
            Number of polls it took

        Raises:
            DeploymentError: the check reported a terminal failure
            StabilityTimeoutError: the ceiling was reached without success
        """
        logger.debug(
            f"Waiting for {condition} on {target}: up to {max_attempts} attempts "
            f"every {delay_seconds}s"
        )
        attempts = 0
        while attempts < max_attempts:
            if attempts:
                await self._sleep(delay_seconds)
            attempts += 1

            result = await check()
            if result.state == PollState.SUCCESS:
                logger.debug(f"{condition} reached for {target} after {attempts} attempts")
                return attempts
            if result.state == PollState.FAILURE:
                raise DeploymentError(
                    f"Waiter {condition} failed for {target}: {result.reason}"
                )
            logger.debug(f"{condition} not reached for {target} ({attempts}/{max_attempts})")

        raise StabilityTimeoutError(condition, target, attempts, delay_seconds)


def services_stable_check(ecs_client: Any, cluster: str, service: str) -> StatusCheck:
    """
    Status check for an ECS service settling on its new revision.

    Stable means exactly one deployment whose running count matches the
    desired count.
    """

    async def check() -> PollResult:
        try:
            response = await aws.call(
                ecs_client.describe_services, cluster=cluster, services=[service]
            )
        except aws.AWS_ERRORS as e:
            return PollResult(PollState.FAILURE, aws.error_message(e))

        failures = response.get("failures") or []
        if failures:
            failure = failures[0]
            return PollResult(PollState.FAILURE, f"{failure.get('arn')} is {failure.get('reason')}")

        services = response.get("services") or []
        if not services:
            return PollResult(PollState.FAILURE, "service is MISSING")

        for described in services:
            status = described.get("status")
            if status in SERVICE_FAILURE_STATUSES:
                return PollResult(PollState.FAILURE, f"service is {status}")
            deployments = described.get("deployments") or []
            if len(deployments) != 1:
                return PollResult(PollState.RETRY, f"{len(deployments)} deployments in progress")
            if described.get("runningCount") != described.get("desiredCount"):
                return PollResult(
                    PollState.RETRY,
                    f"{described.get('runningCount')}/{described.get('desiredCount')} tasks running",
                )
        return PollResult(PollState.SUCCESS)

    return check


def deployment_successful_check(codedeploy_client: Any, deployment_id: str) -> StatusCheck:
    """Status check for a CodeDeploy deployment reaching Succeeded."""

    async def check() -> PollResult:
        try:
            response = await aws.call(codedeploy_client.get_deployment, deploymentId=deployment_id)
        except aws.AWS_ERRORS as e:
            return PollResult(PollState.FAILURE, aws.error_message(e))

        info = response.get("deploymentInfo") or {}
        status: Optional[str] = info.get("status")
        if status == "Succeeded":
            return PollResult(PollState.SUCCESS)
        if status in DEPLOYMENT_FAILURE_STATUSES:
            error_info = info.get("errorInformation") or {}
            reason = error_info.get("message") or f"deployment is {status}"
            return PollResult(PollState.FAILURE, reason)
        return PollResult(PollState.RETRY, f"deployment is {status}")

    return check
