"""Fastboot-deploy deploy action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from fastboot_deploy.pipeline import DeploymentContext, Pipeline

from . import options

_LOGGER = logging.getLogger(__name__)


class DeployAction:
    """Fastboot-deploy deploy action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "deploy",
                help="Build, upload and activate the FastBoot app",
                description="""Builds the FastBoot app, packages it with the
                    browser build into a content addressed zip, uploads it to
                    the bucket and activates it on the Elastic Beanstalk
                    environment.""",
            ),
        )
        options.add_target_flags(args)
        options.add_dist_dir_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        target: str,
        config: pathlib.Path,
        dist_dir: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        pipeline_config = options.build_config(target, config, dist_dir)
        pipeline = Pipeline(pipeline_config)
        context = await pipeline.run(
            DeploymentContext(dist_dir=pathlib.Path(pipeline_config.dist_dir))
        )
        _LOGGER.info(
            "Stage timings: %s", ", ".join(str(t) for t in context.stage_timings)
        )
        print(
            f"Activated s3://{pipeline_config.bucket}/{context.s3_key} on "
            f"{context.application_name}/{context.environment_name}"
        )
