"""Lifecycle notifications."""

from ecs_deployer.notifications.dispatcher import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
