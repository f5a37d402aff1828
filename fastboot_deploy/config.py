"""Configuration objects for fastboot-deploy.

A deploy configuration file maps deploy target names to their settings, in
the same spirit as `ember deploy <target>`:

```yaml
production:
  bucket: my-fastboot-artifacts
  applicationName: my-app
  environmentName: my-app-production
staging:
  environment: staging
  bucket: my-fastboot-artifacts
```

Settings are resolved in this order:
  - Environment variable overrides (`FASTBOOT_EB_BUCKET`, ...) replace the
    values from the file, but only when they are set and non-empty.
  - Defaults fill any key that is still unset.
  - Required keys are checked, failing before any pipeline stage runs.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
import json
import logging
import os
import shlex
from pathlib import Path
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField
import yaml

from .exceptions import ConfigException

__all__ = [
    "PipelineConfig",
    "resolve_config",
    "read_config_file",
    "CONFIG_ENV_MAPPING",
    "DEFAULT_CONFIG",
    "REQUIRED_CONFIG",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config/deploy.yaml")

CONFIG_ENV_MAPPING = {
    "FASTBOOT_EB_APPLICATION": "applicationName",
    "FASTBOOT_EB_ENVIRONMENT": "environmentName",
    "FASTBOOT_EB_BUCKET": "bucket",
}

DEFAULT_CONFIG: dict[str, Any] = {
    "environment": "production",
    "outputPath": str(Path("tmp") / "fastboot-dist"),
    "zipPath": str(Path("tmp") / "fastboot-dist.zip"),
    "distDir": str(Path("tmp") / "deploy-dist"),
    "projectPath": ".",
    "buildCommand": ["ember", "build"],
}

REQUIRED_CONFIG = ["environment", "bucket"]

PACKAGE_JSON = "package.json"


@dataclass(frozen=True)
class PipelineConfig(DataClassDictMixin):
    """Resolved options for a single deployment.

    Populated once by `resolve_config` and read-only afterwards.
    """

    environment: str
    """Build profile passed to the build tool."""

    bucket: str
    """Storage bucket receiving the archive."""

    output_path: str = field(metadata=field_options(alias="outputPath"))
    """Directory the FastBoot build is written to."""

    zip_path: str = field(metadata=field_options(alias="zipPath"))
    """Path of the archive before it is renamed to its content address."""

    dist_dir: str = field(metadata=field_options(alias="distDir"))
    """Directory holding the browser build, archived next to the FastBoot build."""

    project_path: str = field(metadata=field_options(alias="projectPath"))
    """Root of the application project, used as cwd for the build tool."""

    build_command: list[str] = field(metadata=field_options(alias="buildCommand"))
    """Build tool command line, without output and environment flags."""

    application_name: str | None = field(
        default=None, metadata=field_options(alias="applicationName")
    )
    """Elastic Beanstalk application name."""

    environment_name: str | None = field(
        default=None, metadata=field_options(alias="environmentName")
    )
    """Elastic Beanstalk environment name."""

    app_name: str | None = field(default=None, metadata=field_options(alias="appName"))
    """Value of FASTBOOT_APP_NAME, defaults to the project package name."""

    region: str | None = None
    """AWS region for the storage and hosting clients."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True
        forbid_extra_keys = True


def _project_name(project_path: Path) -> str | None:
    """Return the package name of the application project, if any."""
    package_json = project_path / PACKAGE_JSON
    if not package_json.exists():
        return None
    try:
        doc = json.loads(package_json.read_text())
    except (OSError, ValueError) as err:
        raise ConfigException(f"Unable to read {package_json}: {err}") from err
    if not isinstance(doc, dict):
        raise ConfigException(f"Expected {package_json} to contain an object")
    return doc.get("name")


def resolve_config(
    values: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> PipelineConfig:
    """Resolve the final configuration from explicit values and the environment."""
    if environ is None:
        environ = os.environ
    config = dict(values)

    # Copy environment variables to the config if defined.
    for env_key, config_key in CONFIG_ENV_MAPPING.items():
        if value := environ.get(env_key):
            _LOGGER.debug("Using %s from %s", config_key, env_key)
            config[config_key] = value

    for key, default in DEFAULT_CONFIG.items():
        if config.get(key) is None:
            config[key] = default

    if isinstance(config["buildCommand"], str):
        config["buildCommand"] = shlex.split(config["buildCommand"])

    if missing := [key for key in REQUIRED_CONFIG if not config.get(key)]:
        raise ConfigException(
            f"Missing required config: {', '.join(missing)}"
        )

    if not config.get("appName"):
        config["appName"] = _project_name(Path(config["projectPath"]))

    try:
        return PipelineConfig.from_dict(config)
    except (MissingField, InvalidFieldValue, ValueError, TypeError) as err:
        raise ConfigException(f"Invalid config: {err}") from err


def read_config_file(path: Path, target: str) -> dict[str, Any]:
    """Read the settings for a deploy target from a yaml config file."""
    try:
        doc = yaml.safe_load(path.read_text())
    except OSError as err:
        raise ConfigException(f"Unable to read config file {path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigException(f"Config file {path} is not valid yaml: {err}") from err
    if not isinstance(doc, dict):
        raise ConfigException(f"Config file {path} must contain a mapping")
    if target not in doc:
        raise ConfigException(
            f"Deploy target '{target}' not found in {path}, "
            f"expected one of: {', '.join(str(key) for key in doc)}"
        )
    settings = doc[target] or {}
    if not isinstance(settings, dict):
        raise ConfigException(f"Deploy target '{target}' in {path} must be a mapping")
    return settings
