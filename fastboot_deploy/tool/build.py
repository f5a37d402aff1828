"""Fastboot-deploy build action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from fastboot_deploy.pipeline import DeploymentContext, Pipeline

from . import options

_LOGGER = logging.getLogger(__name__)


class BuildAction:
    """Fastboot-deploy build action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "build",
                help="Build the FastBoot app without deploying it",
                description="""Builds the FastBoot app and rewrites its
                    index.html to reference the assets of the browser build.""",
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
            DeploymentContext(dist_dir=pathlib.Path(pipeline_config.dist_dir)),
            build_only=True,
        )
        _LOGGER.info(
            "Stage timings: %s", ", ".join(str(t) for t in context.stage_timings)
        )
        for path in context.fastboot_dist_files:
            print(path)
        if context.reconcile_result and not context.reconcile_result.ok:
            _LOGGER.warning(
                "index.html assets were not rewritten: %s",
                context.reconcile_result.error,
            )
