"""
Slack notifications for deployment lifecycle events.

Sends are scheduled as background tasks and never awaited by the deployment
flow. Delivery failures are logged at DEBUG and discarded.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ecs_deployer.config.settings import SlackConfig
from ecs_deployer.files import load_message_blocks, resolve_workspace_path
from ecs_deployer.models import NotificationPayload, RunContext
from ecs_deployer.notifications.templates import default_blocks
from ecs_deployer.utils.log_sanitizer import sanitize_for_log

logger = logging.getLogger(__name__)

STARTED = "started"
SUCCEEDED = "succeeded"
FAILED = "failed"


class NotificationDispatcher:
    """Fire-and-forget webhook notifier."""

    def __init__(
        self,
        webhook_url: Optional[str],
        context: RunContext,
        language: str = "eng",
        channel: Optional[str] = None,
        display_text: Optional[str] = None,
        custom_blocks: Optional[Dict[str, List[Any]]] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            webhook_url: Slack incoming webhook; notifications are disabled without it
            context: CI run metadata for the default template
            language: Language of the default template
            channel: Optional channel override
            display_text: Optional fallback text
            custom_blocks: Blocks keyed by started/succeeded/failed, replacing the template
            client: HTTP client to use; one is created lazily otherwise
            timeout: Per-request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.context = context
        self.language = language
        self.channel = channel
        self.display_text = display_text
        self.custom_blocks = custom_blocks
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

        # Track background tasks to prevent garbage collection
        self._background_tasks: set = set()

    @classmethod
    def from_config(
        cls, slack: SlackConfig, context: RunContext, workspace: Optional[str] = None
    ) -> "NotificationDispatcher":
        """Build a dispatcher, loading custom block files when all three are given."""
        custom_blocks = None
        if slack.enabled and slack.has_custom_blocks:
            custom_blocks = {
                STARTED: load_message_blocks(
                    resolve_workspace_path(slack.waiting_msg_blocks, workspace),
                    "slack-waiting-msg-blocks",
                ),
                SUCCEEDED: load_message_blocks(
                    resolve_workspace_path(slack.success_msg_blocks, workspace),
                    "slack-success-msg-blocks",
                ),
                FAILED: load_message_blocks(
                    resolve_workspace_path(slack.failure_msg_blocks, workspace),
                    "slack-failure-msg-blocks",
                ),
            }
        return cls(
            webhook_url=slack.webhook_url,
            context=context,
            language=slack.default_blocks_language,
            channel=slack.channel,
            display_text=slack.display_text,
            custom_blocks=custom_blocks,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    @property
    def pending(self) -> int:
        return len(self._background_tasks)

    def build_payload(self, event: str, button_url: str) -> NotificationPayload:
        """Blocks for one lifecycle event, custom or from the default template."""
        if self.custom_blocks is not None:
            blocks = self.custom_blocks[event]
        elif event == STARTED:
            blocks = default_blocks(
                self.context, self.language, STARTED, "status_button", button_url
            )
        else:
            blocks = default_blocks(self.context, self.language, event, "result_button", button_url)
        return NotificationPayload(blocks=blocks, channel=self.channel, text=self.display_text)

    def deploy_started(self, button_url: str) -> None:
        self._dispatch(STARTED, button_url)

    def deploy_succeeded(self, button_url: str) -> None:
        self._dispatch(SUCCEEDED, button_url)

    def deploy_failed(self, button_url: str) -> None:
        self._dispatch(FAILED, button_url)

    def _dispatch(self, event: str, button_url: str) -> None:
        if not self.enabled:
            return
        try:
            payload = self.build_payload(event, button_url)
            task = asyncio.get_running_loop().create_task(self._send(event, payload))
        except Exception as e:
            logger.debug(f"Could not schedule {event} notification: {e}")
            return
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _send(self, event: str, payload: NotificationPayload) -> None:
        try:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=self.timeout)
            response = await self._client.post(
                self.webhook_url,  # type: ignore[arg-type]
                json=payload.to_body(),
                headers={"Content-Type": "application/json"},
            )
            if response.status_code >= 400:
                logger.debug(
                    f"Slack rejected {event} notification: {response.status_code} "
                    f"{sanitize_for_log(response.text)}"
                )
            else:
                logger.debug(f"Sent {event} notification")
        except Exception as e:
            logger.debug(f"Failed to send {event} notification: {sanitize_for_log(e)}")

    async def drain(self, timeout: float = 5.0) -> None:
        """
        Give pending sends up to ``timeout`` seconds, then cancel the rest.

        Called once at process exit. Never raises.
        """
        tasks = list(self._background_tasks)
        if tasks:
            _, still_pending = await asyncio.wait(tasks, timeout=timeout)
            for task in still_pending:
                task.cancel()
            if still_pending:
                await asyncio.gather(*still_pending, return_exceptions=True)
                logger.debug(f"Dropped {len(still_pending)} undelivered notifications")

        if self._owns_client and self._client is not None:
            try:
                await self._client.aclose()
            except Exception as e:
                logger.debug(f"Error closing notification client: {e}")
            self._client = None
