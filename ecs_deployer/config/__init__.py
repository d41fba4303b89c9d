"""Deployer configuration."""

from ecs_deployer.config.settings import DeployerConfig, SlackConfig

__all__ = ["DeployerConfig", "SlackConfig"]
