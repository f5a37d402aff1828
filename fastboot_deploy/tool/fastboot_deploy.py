"""Command line tool for deploying FastBoot apps to Elastic Beanstalk."""

import argparse
import asyncio
import logging
import sys
import traceback

from fastboot_deploy.exceptions import DeployException
from . import build, config, deploy

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for deploying a FastBoot app.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    deploy.DeployAction.register(subparsers)
    build.BuildAction.register(subparsers)
    config.ConfigAction.register(subparsers)
    return parser


def main() -> None:
    """Fastboot-deploy command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except DeployException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("fastboot-deploy error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
