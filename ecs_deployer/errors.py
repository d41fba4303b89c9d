"""
Exception types raised by the deployer.

Every failure that ends a run derives from DeployerError so the orchestrator
can turn it into exactly one failed outcome.
"""

from typing import Any, Dict, Optional


class DeployerError(RuntimeError):
    """Base class for fatal deployment errors."""


class ConfigurationError(DeployerError):
    """Raised when inputs or input files are missing or malformed."""


class RegistrationError(DeployerError):
    """Raised when ECS rejects the task definition."""

    def __init__(self, message: str, task_definition: Optional[Dict[str, Any]] = None):
        self.task_definition = task_definition
        super().__init__(f"Failed to register task definition in ECS: {message}")


class ServiceLookupError(DeployerError):
    """Raised when the target service cannot be described."""


class ServiceStateError(DeployerError):
    """Raised when the target service is not ACTIVE."""

    def __init__(self, status: Optional[str]):
        self.status = status
        super().__init__(f"Service is {status}")


class UnsupportedControllerError(DeployerError):
    """Raised for deployment controllers other than ECS and CODE_DEPLOY."""

    def __init__(self, controller: Optional[str]):
        self.controller = controller
        super().__init__(f"Unsupported deployment controller: {controller}")


class DeploymentError(DeployerError):
    """
    Raised when a rollout cannot be started or does not complete.

    ``deployment_id`` is set once CodeDeploy has accepted a deployment, so
    callers can report it even though the run failed afterwards.
    """

    def __init__(self, message: str, deployment_id: Optional[str] = None):
        self.deployment_id = deployment_id
        super().__init__(message)


class DeploymentSubmitError(DeploymentError):
    """Raised when CodeDeploy rejects CreateDeployment."""


class StabilityTimeoutError(DeploymentError, TimeoutError):
    """Raised when a wait condition is not reached within its attempt ceiling."""

    def __init__(
        self,
        condition: str,
        target: str,
        attempts: int,
        delay_seconds: int,
        deployment_id: Optional[str] = None,
    ):
        self.condition = condition
        self.target = target
        self.attempts = attempts
        self.delay_seconds = delay_seconds
        message = (
            f"Waiter {condition} failed: max attempts exceeded for {target} "
            f"({attempts} attempts, {attempts * delay_seconds}s)"
        )
        super().__init__(message, deployment_id=deployment_id)


class AppSpecError(ConfigurationError, DeploymentError):
    """
    Raised when the AppSpec file is missing, unparsable or malformed.

    Both a configuration problem and a failed blue/green deployment, so it is
    caught by handlers for either.
    """


class ManifestFieldMissingError(AppSpecError):
    """Raised when a required AppSpec property cannot be found."""

    def __init__(self, property_name: str):
        self.property_name = property_name
        super().__init__(f"AppSpec file must include property '{property_name}'")
