"""Tests for the archive library."""

from pathlib import Path
import shutil
import zipfile

import pytest

from fastboot_deploy import archive
from fastboot_deploy.archive import create_archive, hash_rename, hashed_name
from fastboot_deploy.exceptions import ArchiveException
from fastboot_deploy.hashing import content_hash

requires_zip = pytest.mark.skipif(
    shutil.which(archive.ZIP_BIN) is None, reason="zip is not installed"
)


@pytest.fixture
def builds(tmp_path: Path) -> tuple[Path, Path]:
    """FastBoot and browser builds in a common parent directory."""
    fastboot_dist_dir = tmp_path / "tmp" / "fastboot-dist"
    dist_dir = tmp_path / "tmp" / "deploy-dist"
    (fastboot_dist_dir / "assets").mkdir(parents=True)
    (fastboot_dist_dir / "index.html").write_text("<html></html>")
    (fastboot_dist_dir / "assets" / "app.js").write_text("server")
    dist_dir.mkdir(parents=True)
    (dist_dir / "index.html").write_text("<html></html>")
    return fastboot_dist_dir, dist_dir


def test_hashed_name() -> None:
    """Test the content addressed name keeps the stem and suffix."""
    assert hashed_name(Path("tmp/fastboot-dist.zip"), "abc") == Path(
        "tmp/fastboot-dist-abc.zip"
    )


async def test_hash_rename(tmp_path: Path) -> None:
    """Test renaming an archive after its content hash."""
    zip_path = tmp_path / "fastboot-dist.zip"
    zip_path.write_bytes(b"archive contents")

    hashed_zip, digest = await hash_rename(zip_path)

    assert digest == content_hash(b"archive contents")
    assert hashed_zip == tmp_path / f"fastboot-dist-{digest}.zip"
    assert hashed_zip.read_bytes() == b"archive contents"
    assert not zip_path.exists()


async def test_hash_rename_idempotent(tmp_path: Path) -> None:
    """Test identical archives are given identical names."""
    names = []
    for run in ("first", "second"):
        zip_path = tmp_path / run / "fastboot-dist.zip"
        zip_path.parent.mkdir()
        zip_path.write_bytes(b"archive contents")
        hashed_zip, _ = await hash_rename(zip_path)
        names.append(hashed_zip.name)

    assert names[0] == names[1]


async def test_hash_rename_missing(tmp_path: Path) -> None:
    """Test renaming an archive that does not exist."""
    with pytest.raises(ArchiveException, match="Unable to rename"):
        await hash_rename(tmp_path / "fastboot-dist.zip")


@requires_zip
async def test_create_archive(builds: tuple[Path, Path], tmp_path: Path) -> None:
    """Test the archive contains both builds with relative paths."""
    fastboot_dist_dir, dist_dir = builds
    zip_path = tmp_path / "tmp" / "fastboot-dist.zip"

    result = await create_archive(fastboot_dist_dir, dist_dir, zip_path)

    assert result == zip_path.resolve()
    with zipfile.ZipFile(result) as zip_file:
        names = set(zip_file.namelist())
    assert "fastboot-dist/index.html" in names
    assert "fastboot-dist/assets/app.js" in names
    assert "deploy-dist/index.html" in names


@requires_zip
async def test_create_archive_replaces_stale(
    builds: tuple[Path, Path], tmp_path: Path
) -> None:
    """Test an archive left by a previous run is not added to."""
    fastboot_dist_dir, dist_dir = builds
    zip_path = tmp_path / "tmp" / "fastboot-dist.zip"
    with zipfile.ZipFile(zip_path, "w") as zip_file:
        zip_file.writestr("stale.txt", "stale")

    await create_archive(fastboot_dist_dir, dist_dir, zip_path)

    with zipfile.ZipFile(zip_path) as zip_file:
        assert "stale.txt" not in zip_file.namelist()


@requires_zip
async def test_create_archive_same_key(
    builds: tuple[Path, Path], tmp_path: Path
) -> None:
    """Test archiving the same contents twice gives the same key."""
    fastboot_dist_dir, dist_dir = builds
    keys = []
    for _ in range(2):
        zip_path = await create_archive(
            fastboot_dist_dir, dist_dir, tmp_path / "tmp" / "fastboot-dist.zip"
        )
        hashed_zip, _ = await hash_rename(zip_path)
        keys.append(hashed_zip.name)

    assert keys[0] == keys[1]


@pytest.mark.parametrize("missing", [0, 1], ids=["fastboot-dist", "deploy-dist"])
async def test_create_archive_missing_build(
    builds: tuple[Path, Path], tmp_path: Path, missing: int
) -> None:
    """Test both builds must exist before anything is zipped."""
    shutil.rmtree(builds[missing])
    zip_path = tmp_path / "tmp" / "fastboot-dist.zip"

    with pytest.raises(ArchiveException, match=f"{builds[missing].name} does not exist"):
        await create_archive(*builds, zip_path)

    assert not zip_path.exists()


async def test_create_archive_unwritable(
    builds: tuple[Path, Path], tmp_path: Path
) -> None:
    """Test an archive path that cannot be replaced."""
    zip_path = tmp_path / "fastboot-dist.zip"
    zip_path.mkdir()

    with pytest.raises(ArchiveException, match="Unable to prepare"):
        await create_archive(*builds, zip_path)
