"""
ecs-deployer CLI entry point.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from ecs_deployer.config.settings import DeployerConfig
from ecs_deployer.deployment import DeploymentOrchestrator
from ecs_deployer.errors import ConfigurationError
from ecs_deployer.logging_config import setup_logging
from ecs_deployer.models import DeploymentOutcome
from ecs_deployer.notifications import NotificationDispatcher

# Time given to in-flight notifications before the process exits
NOTIFICATION_DRAIN_SECONDS = 5.0


def load_config(config_path: Optional[str]) -> DeployerConfig:
    """Configuration from a YAML file, or from action inputs when no file is given."""
    if config_path:
        return DeployerConfig.from_file(config_path)
    return DeployerConfig.from_env()


async def run_deployment(config: DeployerConfig) -> DeploymentOutcome:
    """Run one deployment and flush notifications."""
    logger = logging.getLogger(__name__)

    try:
        notifier = NotificationDispatcher.from_config(
            config.slack, config.context, workspace=config.workspace
        )
    except ConfigurationError as e:
        logger.warning(f"Slack notifications disabled: {e}")
        notifier = None

    orchestrator = DeploymentOrchestrator(config, notifier=notifier)
    try:
        return await orchestrator.run()
    finally:
        if notifier:
            await notifier.drain(timeout=NOTIFICATION_DRAIN_SECONDS)


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Register an ECS task definition and deploy it to a service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run as a GitHub Action step (inputs come from INPUT_* variables)
  ecs-deployer

  # Run from a configuration file
  ecs-deployer --config deploy.yml

  # Generate a configuration file to start from
  ecs-deployer --generate-config --config deploy.yml
        """,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a YAML configuration file (default: read action inputs)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--log-dir", type=str, default=None, help="Also write logs to this directory"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the deployment outcome as JSON"
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write log files as JSON lines (requires --log-dir)",
    )
    parser.add_argument(
        "--generate-config",
        action="store_true",
        help="Generate a default configuration file and exit",
    )
    parser.add_argument(
        "--validate-config", action="store_true", help="Validate configuration and exit"
    )

    args = parser.parse_args()

    setup_logging(
        console_level="DEBUG" if args.verbose else "INFO",
        log_dir=args.log_dir,
        use_json=args.log_json,
    )
    logger = logging.getLogger(__name__)

    if args.generate_config:
        if not args.config:
            print("--generate-config requires --config")
            return 1
        DeployerConfig(task_definition="task-definition.json").save(args.config)
        print(f"Generated default configuration at: {args.config}")
        return 0

    try:
        config = load_config(args.config)
    except Exception as e:
        logger.error(f"Configuration invalid: {e}")
        return 1

    if args.validate_config:
        print(f"Configuration valid: {args.config or 'action inputs'}")
        return 0

    try:
        outcome = asyncio.run(run_deployment(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"Error running ecs-deployer: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(outcome.model_dump_json(indent=2))

    if not outcome.succeeded:
        return 1

    logger.info(f"Deployment finished ({outcome.state.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
