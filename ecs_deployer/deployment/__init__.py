"""
Deployment of ECS task definitions.

Provides the pieces of a deployment run:
- Task definition normalization and registration
- Service inspection and controller dispatch
- Rolling (ECS) and blue/green (CodeDeploy) strategies
- Bounded stability polling

Usage:
    from ecs_deployer.deployment import DeploymentOrchestrator

    orchestrator = DeploymentOrchestrator(config, ecs_client, codedeploy_client)
    outcome = await orchestrator.run()
"""

from ecs_deployer.deployment.orchestrator import DeploymentOrchestrator

# Export sub-module classes
from ecs_deployer.deployment.blue_green import BlueGreenStrategy
from ecs_deployer.deployment.inspector import ServiceInspector, select_strategy
from ecs_deployer.deployment.normalizer import normalize
from ecs_deployer.deployment.registrar import TaskRegistrar
from ecs_deployer.deployment.rolling import RollingUpdateStrategy
from ecs_deployer.deployment.waiter import StabilityWaiter

__all__ = [
    # Main orchestrator
    "DeploymentOrchestrator",
    # Strategies and steps
    "BlueGreenStrategy",
    "RollingUpdateStrategy",
    "ServiceInspector",
    "StabilityWaiter",
    "TaskRegistrar",
    # Helper functions
    "normalize",
    "select_strategy",
]
