"""
Action outputs.

Under GitHub Actions outputs are appended to the file named by GITHUB_OUTPUT;
elsewhere they are only logged.
"""

import logging
import os
import uuid
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

TASK_DEFINITION_ARN = "task-definition-arn"
CODEDEPLOY_DEPLOYMENT_ID = "codedeploy-deployment-id"


def set_output(name: str, value: str, environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Publish one output value.

    Args:
        name: Output name
        value: Output value
        environ: Environment mapping, defaults to os.environ
    """
    env = os.environ if environ is None else environ
    output_file = env.get("GITHUB_OUTPUT")
    logger.info(f"Output {name}={value}")
    if not output_file:
        return

    if "\n" in value:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        line = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    else:
        line = f"{name}={value}\n"

    with open(output_file, "a", encoding="utf-8") as f:
        f.write(line)
