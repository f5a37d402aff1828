"""Library for common deploy target flags."""

from argparse import ArgumentParser
import logging
import pathlib

from fastboot_deploy.config import (
    DEFAULT_CONFIG_FILE,
    PipelineConfig,
    read_config_file,
    resolve_config,
)

_LOGGER = logging.getLogger(__name__)


def add_target_flags(args: ArgumentParser) -> None:
    """Add flags selecting the deploy target and its config file."""
    args.add_argument(
        "target",
        help="Deploy target to read from the config file, e.g. `production`",
    )
    args.add_argument(
        "--config",
        help="Path to the yaml file with the settings of each deploy target",
        type=pathlib.Path,
        default=DEFAULT_CONFIG_FILE,
    )


def add_dist_dir_flags(args: ArgumentParser) -> None:
    """Add flags for the browser build produced outside of this tool."""
    args.add_argument(
        "--dist-dir",
        help="Directory holding the browser build, overrides `distDir`",
        type=pathlib.Path,
        default=None,
    )


def build_config(
    target: str, config: pathlib.Path, dist_dir: pathlib.Path | None = None
) -> PipelineConfig:
    """Resolve the config of a deploy target from the flags."""
    values = read_config_file(config, target)
    if dist_dir is not None:
        values["distDir"] = str(dist_dir)
    _LOGGER.debug("Read deploy target %s from %s", target, config)
    return resolve_config(values)
