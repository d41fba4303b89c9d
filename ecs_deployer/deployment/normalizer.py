"""
Task definition normalization.

Cleans a parsed task definition so RegisterTaskDefinition accepts it.
"""

import logging
from typing import Any, Dict, Mapping

from ecs_deployer.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Returned by DescribeTaskDefinition, but not valid RegisterTaskDefinition inputs
IGNORED_TASK_DEFINITION_ATTRIBUTES = (
    "compatibilities",
    "taskDefinitionArn",
    "requiresAttributes",
    "revision",
    "status",
)


def is_empty_value(value: Any) -> bool:
    """
    Decide whether a value carries no information.

    None and "" are empty. A list is empty when all of its elements are empty,
    a mapping when all of its values are. Every other scalar, including
    False and 0, is a real value.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, Mapping):
        return all(is_empty_value(child) for child in value.values())
    if isinstance(value, list):
        return all(is_empty_value(element) for element in value)
    return False


def prune_empty_values(value: Any) -> Any:
    """Return a copy of ``value`` with every empty entry removed, at any depth."""
    if isinstance(value, Mapping):
        return {
            key: prune_empty_values(child)
            for key, child in value.items()
            if not is_empty_value(child)
        }
    if isinstance(value, list):
        return [prune_empty_values(element) for element in value if not is_empty_value(element)]
    return value


def remove_ignored_attributes(task_definition: Dict[str, Any]) -> Dict[str, Any]:
    """Drop server-populated attributes, warning once for each one found."""
    for attribute in IGNORED_TASK_DEFINITION_ATTRIBUTES:
        if attribute in task_definition:
            logger.warning(
                f"Ignoring property '{attribute}' in the task definition file. "
                "This property is returned by the Amazon ECS DescribeTaskDefinition API "
                "and may be shown in the ECS console, but it is not a valid field when "
                "registering a new task definition. "
                "This field can be safely removed from your task definition file."
            )
            del task_definition[attribute]
    return task_definition


def normalize(raw: Any) -> Dict[str, Any]:
    """
    Prepare a decoded task definition for registration.

    Args:
        raw: Task definition as parsed from YAML or JSON

    Returns:
        New mapping without empty values or server-only attributes
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Task definition must be a mapping, got {type(raw).__name__}"
        )

    cleaned: Dict[str, Any] = prune_empty_values(raw)
    return remove_ignored_attributes(cleaned)

