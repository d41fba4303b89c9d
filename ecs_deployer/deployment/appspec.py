"""
CodeDeploy AppSpec handling.

AppSpec keys are matched case-insensitively (``Resources`` and ``resources``
are the same key); the first matching key wins.
"""

import hashlib
import json
from typing import Any, List, Mapping, MutableMapping, NamedTuple, Optional

from ecs_deployer.errors import AppSpecError, ManifestFieldMissingError

RESOURCES_KEY = "resources"
PROPERTIES_KEY = "properties"
TASK_DEFINITION_KEY = "taskDefinition"


class AppSpecRevision(NamedTuple):
    """Serialized AppSpec and its digest, submitted together."""

    content: str
    sha256: str


def find_appspec_key(obj: Optional[Mapping[str, Any]], key_name: str) -> str:
    """
    Find the actual spelling of ``key_name`` in ``obj``.

    Raises:
        ManifestFieldMissingError: obj is empty or has no matching key
    """
    if not obj or not isinstance(obj, Mapping):
        raise ManifestFieldMissingError(key_name)

    key_to_match = key_name.lower()
    for key in obj:
        if str(key).lower() == key_to_match:
            return key

    raise ManifestFieldMissingError(key_name)


def find_appspec_value(obj: Optional[Mapping[str, Any]], key_name: str) -> Any:
    return obj[find_appspec_key(obj, key_name)]  # type: ignore[index]


def patch_task_definition(appspec: MutableMapping[str, Any], task_definition_arn: str) -> List[str]:
    """
    Point every resource in the AppSpec at the new task definition.

    Only the TaskDefinition property of each resource is rewritten. Other
    values keep whatever the loader made of them; ``load_structured_file``
    only reads true/false as booleans, so ``on`` or ``yes`` stay strings.

    Args:
        appspec: Parsed AppSpec document, patched in place
        task_definition_arn: New revision ARN

    Returns:
        Names of the patched resources

    Raises:
        ManifestFieldMissingError: a required property is absent or empty
        AppSpecError: resources are not a list of named resource mappings
    """
    resources = find_appspec_value(appspec, RESOURCES_KEY)
    if not resources:
        raise ManifestFieldMissingError(RESOURCES_KEY)
    if not isinstance(resources, list):
        raise AppSpecError(
            f"AppSpec property '{RESOURCES_KEY}' must be a list of resources, "
            f"got {type(resources).__name__}"
        )

    patched = []
    for index, resource in enumerate(resources):
        if not isinstance(resource, Mapping):
            raise AppSpecError(
                f"AppSpec resource #{index + 1} must map a resource name to its definition, "
                f"got {type(resource).__name__}"
            )
        for name, contents in resource.items():
            if not isinstance(contents, Mapping):
                raise AppSpecError(
                    f"AppSpec resource '{name}' must be a mapping, got {type(contents).__name__}"
                )
            properties = find_appspec_value(contents, PROPERTIES_KEY)
            task_definition_key = find_appspec_key(properties, TASK_DEFINITION_KEY)
            properties[task_definition_key] = task_definition_arn
            patched.append(name)
    return patched


def render_appspec(appspec: Mapping[str, Any]) -> AppSpecRevision:
    """
    Serialize the AppSpec to compact JSON and hash exactly that text.

    The digest lets CodeDeploy check the content was not altered in transit.
    """
    content = json.dumps(appspec, separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
    return AppSpecRevision(content=content, sha256=digest)
