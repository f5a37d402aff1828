"""Library for packaging the builds into a content addressed zip archive.

The archive holds both the FastBoot and browser build directories, rooted at
their common parent so that the members keep their relative paths, e.g.
`fastboot-dist/package.json` and `deploy-dist/index.html`.
"""

import logging
import os
from pathlib import Path

import aiofiles
import aiofiles.os
from aiofiles.ospath import exists, isdir

from . import command
from .exceptions import ArchiveException
from .hashing import content_hash

__all__ = [
    "create_archive",
    "hash_rename",
    "hashed_name",
]

_LOGGER = logging.getLogger(__name__)


ZIP_BIN = "zip"


async def create_archive(fastboot_dist_dir: Path, dist_dir: Path, zip_path: Path) -> Path:
    """Zip the FastBoot and browser build directories into `zip_path`.

    Any archive left at `zip_path` by a previous run is replaced since `zip`
    would otherwise add to it.
    """
    for build_dir in (fastboot_dist_dir, dist_dir):
        if not await isdir(str(build_dir)):
            raise ArchiveException(f"Build directory {build_dir} does not exist")

    zip_path = zip_path.resolve()
    root = fastboot_dist_dir.resolve().parent
    members = [
        fastboot_dist_dir.resolve().name,
        os.path.relpath(dist_dir.resolve(), root),
    ]
    _LOGGER.debug("Zipping %s into %s", " ".join(members), zip_path)

    try:
        if await exists(str(zip_path)):
            await aiofiles.os.remove(str(zip_path))
        await aiofiles.os.makedirs(str(zip_path.parent), exist_ok=True)
    except OSError as err:
        raise ArchiveException(f"Unable to prepare {zip_path}: {err}") from err

    # -X drops the uid/gid and access time extra fields
    await command.run(
        command.Command(
            [ZIP_BIN, "-r", "-q", "-X", str(zip_path), *members],
            cwd=root,
            exc=ArchiveException,
        )
    )
    return zip_path


def hashed_name(zip_path: Path, digest: str) -> Path:
    """Return the content addressed path for an archive."""
    return zip_path.with_name(f"{zip_path.stem}-{digest}{zip_path.suffix}")


async def hash_rename(zip_path: Path) -> tuple[Path, str]:
    """Rename the archive after the hash of its contents.

    Returns the new path and the content hash.
    """
    try:
        async with aiofiles.open(str(zip_path), mode="rb") as zip_file:
            digest = content_hash(await zip_file.read())
        hashed_zip = hashed_name(zip_path, digest)
        await aiofiles.os.rename(str(zip_path), str(hashed_zip))
    except OSError as err:
        raise ArchiveException(f"Unable to rename {zip_path}: {err}") from err
    _LOGGER.debug("Created %s", hashed_zip)
    return hashed_zip, digest
