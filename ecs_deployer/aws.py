"""
AWS client helpers.

boto3 is synchronous; calls are pushed to the default executor so the
deployment flow stays a single awaitable sequence.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

USER_AGENT = "ecs-deployer"

# Errors raised by boto3 calls that we translate into deployer errors
AWS_ERRORS = (ClientError, BotoCoreError)


def create_clients(region: Optional[str] = None) -> Tuple[Any, Any]:
    """
    Create ECS and CodeDeploy clients sharing one session.

    Args:
        region: AWS region; boto3's default resolution is used when omitted

    Returns:
        Tuple of (ecs_client, codedeploy_client)
    """
    session = boto3.Session(region_name=region) if region else boto3.Session()
    config = Config(user_agent_extra=USER_AGENT)
    ecs = session.client("ecs", config=config)
    codedeploy = session.client("codedeploy", config=config)
    logger.debug(f"Created AWS clients for region {ecs.meta.region_name}")
    return ecs, codedeploy


def client_region(client: Any) -> str:
    """Region a boto3 client is bound to, for console links."""
    meta = getattr(client, "meta", None)
    return getattr(meta, "region_name", None) or "us-east-1"


def error_message(error: Exception) -> str:
    """Upstream message of a boto3 error, falling back to str()."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Message") or error)
    return str(error)


async def call(method: Callable[..., Any], **kwargs: Any) -> Any:
    """Run one blocking boto3 call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(method, **kwargs))


def ecs_service_console_url(region: str, cluster: str, service: str) -> str:
    return (
        f"https://console.aws.amazon.com/ecs/home?region={region}"
        f"#/clusters/{cluster}/services/{service}/events"
    )


def codedeploy_console_url(region: str, deployment_id: str) -> str:
    return (
        f"https://console.aws.amazon.com/codesuite/codedeploy/deployments/"
        f"{deployment_id}?region={region}"
    )
