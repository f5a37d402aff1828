"""Library for running the application build tool in FastBoot mode.

The build tool is an external command (`ember build` by default) that decides
whether to generate the server rendered app by reading the `EMBER_CLI_FASTBOOT`
environment variable. The variable is process wide, so it is only ever set
within `server_render_mode`, which is not re-entrant:

```python
builder = Builder(Path("tmp/fastboot-dist"), "production")
try:
    with server_render_mode():
        await builder.build()
finally:
    await builder.cleanup()
```
"""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import shutil
import tempfile

from . import command
from .exceptions import BuildException

__all__ = [
    "Builder",
    "server_render_mode",
    "walk_files",
]

_LOGGER = logging.getLogger(__name__)


FASTBOOT_ENV = "EMBER_CLI_FASTBOOT"
DEFAULT_BUILD_COMMAND = ["ember", "build"]

_server_render_active = False


@contextmanager
def server_render_mode() -> Generator[None, None, None]:
    """Signal the build tool to generate the server rendered app.

    The flag is reset on every exit path. Concurrent builds in one process
    would share the flag, so entering the scope twice is an error.
    """
    global _server_render_active
    if _server_render_active:
        raise BuildException("A FastBoot build is already running in this process")
    _server_render_active = True
    os.environ[FASTBOOT_ENV] = "true"
    try:
        yield
    finally:
        os.environ[FASTBOOT_ENV] = "false"
        _server_render_active = False


def walk_files(path: Path) -> Iterator[str]:
    """Yield the relative path of every file under `path`, sorted per directory."""
    for root, dirs, files in os.walk(str(path)):
        dirs.sort()
        for file in sorted(files):
            yield str((Path(root) / file).relative_to(path))


@dataclass
class Builder:
    """Builds the application into an output directory.

    The build tool writes into a transient working directory which is copied
    to `output_path` once the build succeeds. `cleanup` removes the working
    directory and must be called on both success and failure.
    """

    output_path: Path
    """Directory that receives the build output."""

    environment: str
    """Build profile, e.g. `production`."""

    project_path: Path = field(default_factory=Path)
    """Root of the application project."""

    build_command: list[str] = field(
        default_factory=lambda: list(DEFAULT_BUILD_COMMAND)
    )
    """Build tool command line, without output and environment flags."""

    _tmp_dir: Path | None = field(default=None, init=False, repr=False)

    @property
    def task(self) -> command.Command:
        """Return the build tool command."""
        if self._tmp_dir is None:
            raise BuildException("Build working directory was not created")
        return command.Command(
            [
                *self.build_command,
                f"--environment={self.environment}",
                f"--output-path={self._tmp_dir}",
            ],
            cwd=self.project_path,
            exc=BuildException,
        )

    async def build(self) -> None:
        """Run the build tool and move the result to the output path."""
        self._tmp_dir = Path(tempfile.mkdtemp(prefix="fastboot-build-"))
        await command.run(self.task)
        try:
            if self.output_path.exists():
                shutil.rmtree(self.output_path)
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(self._tmp_dir, self.output_path)
        except OSError as err:
            raise BuildException(
                f"Unable to write build output to {self.output_path}: {err}"
            ) from err

    async def cleanup(self) -> None:
        """Remove the transient build working directory."""
        if self._tmp_dir is None:
            return
        _LOGGER.debug("Removing build working directory %s", self._tmp_dir)
        shutil.rmtree(self._tmp_dir, ignore_errors=True)
        self._tmp_dir = None
