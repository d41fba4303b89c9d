"""
Loading of user-supplied files: task definitions, AppSpec files and Slack
message blocks.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Union

import aiofiles  # type: ignore
import yaml

from ecs_deployer.errors import ConfigurationError

logger = logging.getLogger(__name__)

BOOL_TAG = "tag:yaml.org,2002:bool"


class StrictBoolLoader(yaml.SafeLoader):
    """
    SafeLoader that reads only true/false as booleans, as YAML 1.2 does.

    Plain YAML 1.1 turns unquoted yes/no/on/off into booleans, which would
    silently rewrite values in task definitions and AppSpec files.
    """


StrictBoolLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
StrictBoolLoader.add_implicit_resolver(
    BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)


def resolve_workspace_path(path: Union[str, Path], workspace: Optional[Union[str, Path]]) -> Path:
    """Absolute paths are used as-is; relative ones are joined to the workspace."""
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return Path(workspace or Path.cwd()) / candidate


def _parse_structured(text: str, source: Path) -> Any:
    try:
        return yaml.load(text, Loader=StrictBoolLoader)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{source} is not valid YAML or JSON: {e}") from e


def load_structured_file(path: Union[str, Path]) -> Any:
    """
    Parse a YAML or JSON file.

    Args:
        path: File to read

    Returns:
        Decoded document
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigurationError(f"{source} does not exist!") from e
    logger.debug(f"Loaded {source}")
    return _parse_structured(text, source)


async def load_structured_file_async(path: Union[str, Path]) -> Any:
    """Async variant of load_structured_file, used inside the deployment flow."""
    source = Path(path)
    try:
        async with aiofiles.open(source, "r", encoding="utf-8") as f:
            text = await f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(f"{source} does not exist!") from e
    logger.debug(f"Loaded {source}")
    return _parse_structured(text, source)


def load_message_blocks(path: Union[str, Path], name: str) -> List[Any]:
    """
    Read a Slack block list from a JSON file.

    Args:
        path: JSON file holding the blocks
        name: Input name, used in error messages

    Returns:
        Decoded block list
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigurationError(f"{source} does not exist!") from e

    try:
        blocks = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"your {name} is not JSON format!") from e

    if isinstance(blocks, dict) and "blocks" in blocks:
        blocks = blocks["blocks"]
    if not isinstance(blocks, list):
        raise ConfigurationError(f"your {name} must be a list of blocks")
    return blocks
