"""Fixtures for fastboot-deploy tests."""

from collections.abc import Mapping
import json
import pathlib
from typing import Any

import pytest

from fastboot_deploy.config import PipelineConfig, resolve_config
from fastboot_deploy.elastic_beanstalk import EnvironmentClient
from fastboot_deploy.storage import Storage, UploadResult

TESTDATA = pathlib.Path(__file__).parent / "testdata"
FAKE_BUILD_COMMAND = ["sh", str(TESTDATA / "fake_build.sh")]

BROWSER_ASSET_MAP = {
    "prepend": "/",
    "assets": {
        "assets/app.js": "assets/app-browser.js",
        "assets/app.css": "assets/app-browser.css",
    },
}


class FakeStorage(Storage):
    """Records uploads instead of sending them to a bucket."""

    def __init__(self, error: Exception | None = None) -> None:
        self.uploads: list[tuple[str, str, bytes]] = []
        self.error = error

    async def upload(self, bucket: str, key: str, path: pathlib.Path) -> UploadResult:
        if self.error:
            raise self.error
        contents = path.read_bytes()
        self.uploads.append((bucket, key, contents))
        return UploadResult(bucket=bucket, key=key, size=len(contents))


class FakeEnvironmentClient(EnvironmentClient):
    """Records environment updates."""

    def __init__(self, error: Exception | None = None) -> None:
        self.updates: list[tuple[str, str, dict[str, str]]] = []
        self.error = error

    async def update_environment(
        self,
        application_name: str,
        environment_name: str,
        variables: Mapping[str, str],
    ) -> None:
        if self.error:
            raise self.error
        self.updates.append((application_name, environment_name, dict(variables)))


@pytest.fixture
def dist_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Browser build written next to the FastBoot build output."""
    path = tmp_path / "tmp" / "deploy-dist"
    (path / "assets").mkdir(parents=True)
    (path / "assets" / "assetMap.json").write_text(json.dumps(BROWSER_ASSET_MAP))
    (path / "assets" / "app-browser.js").write_text("browser")
    (path / "index.html").write_text("<html></html>")
    return path


@pytest.fixture
def config_values(tmp_path: pathlib.Path, dist_dir: pathlib.Path) -> dict[str, Any]:
    """Explicit configuration for a deploy into the test directory."""
    return {
        "environment": "production",
        "bucket": "fastboot-bucket",
        "applicationName": "my-app",
        "environmentName": "my-app-production",
        "appName": "my-ember-app",
        "outputPath": str(tmp_path / "tmp" / "fastboot-dist"),
        "zipPath": str(tmp_path / "tmp" / "fastboot-dist.zip"),
        "distDir": str(dist_dir),
        "projectPath": str(tmp_path),
        "buildCommand": FAKE_BUILD_COMMAND,
    }


@pytest.fixture
def pipeline_config(config_values: dict[str, Any]) -> PipelineConfig:
    """Resolved configuration for a deploy into the test directory."""
    return resolve_config(config_values, environ={})


@pytest.fixture
def storage() -> FakeStorage:
    """Storage that records uploads, set `error` to fail them."""
    return FakeStorage()


@pytest.fixture
def environment_client() -> FakeEnvironmentClient:
    """Environment client that records updates, set `error` to fail them."""
    return FakeEnvironmentClient()


@pytest.fixture
def fake_build_command() -> list[str]:
    """Build tool command writing a canned FastBoot build."""
    return list(FAKE_BUILD_COMMAND)
