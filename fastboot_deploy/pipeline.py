"""Pipeline for deploying a FastBoot app to Elastic Beanstalk.

The pipeline runs these stages strictly in order, each reading the fields of
the `DeploymentContext` written by the stages before it:

  - build: Builds the FastBoot app into `outputPath`.
  - reconcile: Rewrites the FastBoot index.html to reference the assets of the
    browser build. Failures are logged and the pipeline continues.
  - archive: Zips both builds and renames the archive after its content hash.
  - upload: Uploads the archive to the bucket keyed by its file name.
  - activate: Points the Elastic Beanstalk environment at the uploaded key.

A failure in any other stage aborts the pipeline and the exception is
propagated to the caller. Stages that already completed are not undone, e.g.
an archive uploaded before a failed activation stays in the bucket.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import logging
from pathlib import Path

from .archive import create_archive, hash_rename
from .asset_map import ReconcileResult, reconcile_assets
from .builder import Builder, server_render_mode, walk_files
from .config import PipelineConfig
from .context import StageTiming, stage_scope
from .elastic_beanstalk import ElasticBeanstalk, EnvironmentClient
from .exceptions import ConfigException, DeployException
from .storage import S3Storage, Storage, UploadResult

__all__ = [
    "DeploymentContext",
    "Pipeline",
]

_LOGGER = logging.getLogger(__name__)


FASTBOOT_APP_NAME = "FASTBOOT_APP_NAME"
FASTBOOT_S3_BUCKET = "FASTBOOT_S3_BUCKET"
FASTBOOT_S3_KEY = "FASTBOOT_S3_KEY"


@dataclass
class DeploymentContext:
    """State threaded through the stages of a single deployment.

    A new context is used for every run and never shared between runs.
    """

    dist_dir: Path
    """Browser build directory. Input, read by reconcile and archive."""

    fastboot_dist_dir: Path | None = None
    """FastBoot build directory. Written by build."""

    fastboot_dist_files: list[str] = field(default_factory=list)
    """Files produced by the FastBoot build. Written by build."""

    reconcile_result: ReconcileResult | None = None
    """Written by reconcile."""

    zip_path: Path | None = None
    """Archive before the rename. Written by archive."""

    content_hash: str | None = None
    """Written by archive."""

    hashed_zip: Path | None = None
    """Content addressed archive. Written by archive, read by upload."""

    s3_key: str | None = None
    """Written by upload, read by activate."""

    upload_result: UploadResult | None = None
    """Written by upload."""

    application_name: str | None = None
    """Written by activate."""

    environment_name: str | None = None
    """Written by activate."""

    activated: bool = False
    """Written by activate."""

    stage_timings: list[StageTiming] = field(default_factory=list)
    """Elapsed time of every stage that ran, in order. Written by run."""


Stage = Callable[[DeploymentContext], Awaitable[None]]


class Pipeline:
    """Runs the deployment stages for a resolved configuration."""

    def __init__(
        self,
        config: PipelineConfig,
        storage: Storage | None = None,
        environment_client: EnvironmentClient | None = None,
        builder: Builder | None = None,
    ) -> None:
        """Initialize Pipeline."""
        self._config = config
        self._storage = storage or S3Storage(region=config.region)
        self._environment_client = environment_client or ElasticBeanstalk(
            region=config.region
        )
        self._builder = builder or Builder(
            output_path=Path(config.output_path),
            environment=config.environment,
            project_path=Path(config.project_path),
            build_command=list(config.build_command),
        )

    @property
    def stages(self) -> list[tuple[str, Stage]]:
        """Return all stages in the order they run."""
        return [
            ("build", self.build),
            ("reconcile", self.reconcile),
            ("archive", self.archive),
            ("upload", self.upload),
            ("activate", self.activate),
        ]

    def check_config(self, build_only: bool = False) -> None:
        """Fail before any stage runs if activation could not succeed."""
        if build_only:
            return
        missing = []
        if not self._config.application_name:
            missing.append("applicationName")
        if not self._config.environment_name:
            missing.append("environmentName")
        if not self._config.app_name:
            missing.append("appName")
        if missing:
            raise ConfigException(
                f"Missing config required for activation: {', '.join(missing)}"
            )

    async def run(
        self, context: DeploymentContext, build_only: bool = False
    ) -> DeploymentContext:
        """Run the stages, stopping after reconcile when `build_only` is set."""
        self.check_config(build_only)
        stages = self.stages[:2] if build_only else self.stages
        for name, stage in stages:
            with stage_scope(name, context.stage_timings):
                await stage(context)
        return context

    async def build(self, context: DeploymentContext) -> None:
        """Build the FastBoot app and record the files it produced."""
        output_path = self._builder.output_path
        _LOGGER.info(
            "Building fastboot app to `%s` using buildEnv `%s`",
            output_path,
            self._builder.environment,
        )
        try:
            try:
                with server_render_mode():
                    await self._builder.build()
            finally:
                await self._builder.cleanup()
        except DeployException:
            _LOGGER.error("Build failed")
            raise

        files = []
        for path in walk_files(output_path):
            _LOGGER.debug("✔  %s", path)
            files.append(path)
        _LOGGER.info("Fastboot build ok (%d files)", len(files))
        context.fastboot_dist_dir = output_path
        context.fastboot_dist_files = files

    async def reconcile(self, context: DeploymentContext) -> None:
        """Rewrite the FastBoot index.html assets, never failing the pipeline."""
        fastboot_dist_dir = context.fastboot_dist_dir or Path(self._config.output_path)
        context.reconcile_result = await reconcile_assets(
            context.dist_dir, fastboot_dist_dir
        )

    async def archive(self, context: DeploymentContext) -> None:
        """Zip both builds and rename the archive after its content hash."""
        fastboot_dist_dir = context.fastboot_dist_dir or Path(self._config.output_path)
        zip_path = await create_archive(
            fastboot_dist_dir, context.dist_dir, Path(self._config.zip_path)
        )
        hashed_zip, digest = await hash_rename(zip_path)
        _LOGGER.info("Created %s", hashed_zip)
        context.zip_path = zip_path
        context.content_hash = digest
        context.hashed_zip = hashed_zip

    async def upload(self, context: DeploymentContext) -> None:
        """Upload the archive, keyed by its content addressed file name."""
        if context.hashed_zip is None:
            raise DeployException("No archive was created to upload")
        bucket = self._config.bucket
        key = context.hashed_zip.name
        _LOGGER.info("Uploading %s to %s", context.hashed_zip, bucket)
        context.upload_result = await self._storage.upload(
            bucket, key, context.hashed_zip
        )
        context.s3_key = key

    async def activate(self, context: DeploymentContext) -> None:
        """Point the environment at the archive uploaded in this run."""
        if context.s3_key is None:
            raise DeployException("No archive was uploaded to activate")
        application_name = self._config.application_name
        environment_name = self._config.environment_name
        if not application_name or not environment_name or not self._config.app_name:
            raise ConfigException("Missing config required for activation")

        variables = {
            FASTBOOT_APP_NAME: self._config.app_name,
            FASTBOOT_S3_BUCKET: self._config.bucket,
            FASTBOOT_S3_KEY: context.s3_key,
        }
        _LOGGER.info(
            "Activating build on Elastic Beanstalk environment %s", environment_name
        )
        for name, value in variables.items():
            _LOGGER.debug("Setting %s to %s", name, value)

        await self._environment_client.update_environment(
            application_name, environment_name, variables
        )
        context.application_name = application_name
        context.environment_name = environment_name
        context.activated = True
