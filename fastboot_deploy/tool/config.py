"""Fastboot-deploy config action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

import yaml

from . import options

_LOGGER = logging.getLogger(__name__)


class ConfigAction:
    """Fastboot-deploy config action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "config",
                help="Print the resolved config of a deploy target",
                description="""Prints the settings of the deploy target after
                    environment variable overrides and defaults are applied.""",
            ),
        )
        options.add_target_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        target: str,
        config: pathlib.Path,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        pipeline_config = options.build_config(target, config)
        print(
            yaml.dump(pipeline_config.to_dict(), sort_keys=False, explicit_start=True),
            end="",
        )
