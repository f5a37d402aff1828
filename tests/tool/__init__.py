"""Test helpers for fastboot-deploy tools."""

import sys

from fastboot_deploy.command import Command, run

FASTBOOT_DEPLOY_BIN = [sys.executable, "-m", "fastboot_deploy"]


async def run_command(args: list[str], env: dict[str, str] | None = None) -> str:
    return await run(Command(FASTBOOT_DEPLOY_BIN + args, env=env))
