"""ecs-deployer - Deploy ECS task definitions with rolling or blue/green rollouts."""

__version__ = "1.0.0"
