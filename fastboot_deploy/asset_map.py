"""Reconcile the FastBoot index.html with the browser build asset map.

The browser and FastBoot builds are produced independently, so the hashed
filenames in each `assets/assetMap.json` may differ. The FastBoot app renders
the `index.html` from its own build, while the assets are served from the
browser build. Every asset reference in the FastBoot `index.html` is rewritten
to the filename the browser build will actually serve:

```python
from fastboot_deploy.asset_map import reconcile_assets

result = await reconcile_assets(Path("tmp/deploy-dist"), Path("tmp/fastboot-dist"))
if not result.ok:
    print(f"index.html left unchanged: {result.error}")
```

A failure to reconcile is never fatal, since a build with stale asset
references still renders. The result records the failure instead.
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import re

import aiofiles
from mashumaro import DataClassDictMixin
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "AssetManifest",
    "ReconcileResult",
    "read_asset_map",
    "rewrite_assets",
    "reconcile_assets",
]

_LOGGER = logging.getLogger(__name__)

ASSET_MAP_PATH = Path("assets") / "assetMap.json"
INDEX_HTML = "index.html"


@dataclass(frozen=True)
class AssetManifest(DataClassDictMixin):
    """Mapping of logical asset names to their fingerprinted filenames."""

    assets: dict[str, str]
    """Logical asset name to the hashed filename, e.g. `app.js: app-123.js`."""

    prepend: str = ""
    """Path prefix applied to every asset, e.g. a CDN url."""

    @classmethod
    def parse_doc(cls, doc: str) -> "AssetManifest":
        """Parse a serialized assetMap.json document."""
        try:
            data = json.loads(doc)
        except ValueError as err:
            raise InputException(f"Asset map is not valid json: {err}") from err
        if not isinstance(data, dict):
            raise InputException(f"Asset map must be an object: {data!r}")
        if data.get("prepend") is None:
            data["prepend"] = ""
        elif not isinstance(data["prepend"], str):
            raise InputException(
                f"Asset map prepend must be a string: {data['prepend']!r}"
            )
        assets = data.get("assets")
        if isinstance(assets, dict) and not all(
            isinstance(value, str) for value in assets.values()
        ):
            raise InputException("Asset map filenames must be strings")
        try:
            return cls.from_dict(data)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid asset map: {err}") from err


@dataclass
class ReconcileResult:
    """Outcome of reconciling the FastBoot index.html."""

    replacements: dict[str, str] = field(default_factory=dict)
    """Asset references that were rewritten, old to new."""

    error: Exception | None = None
    """The soft failure that left the document unchanged, if any."""

    @property
    def ok(self) -> bool:
        """Return True if the document was reconciled."""
        return self.error is None


async def read_asset_map(path: Path) -> AssetManifest:
    """Read an assetMap.json file from disk."""
    async with aiofiles.open(str(path)) as asset_map_file:
        content = await asset_map_file.read()
    return AssetManifest.parse_doc(content)


def rewrite_assets(
    document: str, client: AssetManifest, server: AssetManifest
) -> tuple[str, dict[str, str]]:
    """Rewrite server build asset references to the client build filenames.

    The client prepend is used for both the old and new reference. Keys that
    the client build does not know about are left as is.
    """
    replacements: dict[str, str] = {}
    for key, old_file in server.assets.items():
        if (new_file := client.assets.get(key)) is None:
            _LOGGER.debug("Asset %s not found in client asset map", key)
            continue
        old = client.prepend + old_file
        new = client.prepend + new_file
        if old != new and old in document:
            replacements[old] = new
    if not replacements:
        return document, replacements

    # Single pass so that a new filename is never rewritten again
    pattern = re.compile(
        "|".join(
            re.escape(old) for old in sorted(replacements, key=len, reverse=True)
        )
    )
    return pattern.sub(lambda m: replacements[m.group(0)], document), replacements


async def reconcile_assets(dist_dir: Path, fastboot_dist_dir: Path) -> ReconcileResult:
    """Rewrite the FastBoot index.html in place to match the browser build."""
    index_path = fastboot_dist_dir / INDEX_HTML
    try:
        client = await read_asset_map(dist_dir / ASSET_MAP_PATH)
        server = await read_asset_map(fastboot_dist_dir / ASSET_MAP_PATH)
        async with aiofiles.open(str(index_path), newline="") as index_file:
            document = await index_file.read()
        content, replacements = rewrite_assets(document, client, server)
        if replacements:
            async with aiofiles.open(str(index_path), mode="w", newline="") as index_file:
                await index_file.write(content)
    except (OSError, UnicodeDecodeError, InputException) as err:
        _LOGGER.debug("Unable to rewrite assets: %s", err, exc_info=True)
        return ReconcileResult(error=err)

    for old, new in replacements.items():
        _LOGGER.debug("Rewrote %s to %s", old, new)
    return ReconcileResult(replacements=replacements)
