"""Fetch and verify the assets a workload needs."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Dict, Mapping

from wb_common.client import Client
from wb_common.errors import AssetError, RemoteRequestError, wrap_error
from wb_runner.models.workload import Asset

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1 << 20


def sha256_of(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def asset_path(asset_folder: Path, name: str, asset: Asset) -> Path:
    return asset_folder / (asset.local_location or name)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("could not remove %s: %s", path, exc)


async def _download(
    client: Client, name: str, url: str, asset: Asset, destination: Path
) -> None:
    partial = destination.with_name(destination.name + ".part")
    digest = hashlib.sha256()
    logger.info("Downloading asset %s from %s", name, url)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        async with client.stream("GET", url) as response:
            if not response.is_success:
                raise AssetError(
                    f"could not download asset {name}: status {response.status_code}",
                    context={"asset": name, "url": url},
                )
            with partial.open("wb") as fh:
                async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                    digest.update(chunk)
                    fh.write(chunk)
    except RemoteRequestError as exc:
        _discard(partial)
        raise wrap_error(
            AssetError,
            f"could not download asset {name}: {exc}",
            context={"asset": name, "url": url},
            cause=exc,
        ) from exc
    except OSError as exc:
        _discard(partial)
        raise wrap_error(
            AssetError,
            f"could not store asset {name} at {destination}: {exc}",
            context={"asset": name, "path": destination},
            cause=exc,
        ) from exc
    except BaseException:
        _discard(partial)
        raise

    actual = digest.hexdigest()
    if asset.sha256 and actual != asset.sha256:
        _discard(partial)
        raise AssetError(
            f"asset {name} has sha256 {actual}, expected {asset.sha256}",
            context={"asset": name, "expected": asset.sha256, "actual": actual},
        )
    try:
        partial.replace(destination)
    except OSError as exc:
        _discard(partial)
        raise wrap_error(
            AssetError,
            f"could not store asset {name} at {destination}: {exc}",
            context={"asset": name, "path": destination},
            cause=exc,
        ) from exc


def _is_cached(name: str, asset: Asset, path: Path) -> bool:
    if asset.sha256 is None:
        logger.debug("Using local asset %s without checksum", name)
        return True
    try:
        actual = sha256_of(path)
    except OSError as exc:
        raise wrap_error(
            AssetError,
            f"could not read asset {name} at {path}: {exc}",
            context={"asset": name, "path": path},
            cause=exc,
        ) from exc
    if actual == asset.sha256:
        logger.debug("Using cached asset %s", name)
        return True
    logger.warning("Cached asset %s does not match its checksum, refetching", name)
    return False


async def fetch_asset(client: Client, name: str, asset: Asset, asset_folder: Path) -> Path:
    """Return the local path of ``asset``, downloading it when needed."""
    path = asset_path(asset_folder, name, asset)
    if path.exists() and _is_cached(name, asset, path):
        return path
    if asset.remote_location is None:
        raise AssetError(
            f"asset {name} is not available at {path} and has no remote location",
            context={"asset": name, "path": path},
        )
    await _download(client, name, asset.remote_location, asset, path)
    return path


async def fetch_assets(
    client: Client, assets: Mapping[str, Asset], asset_folder: Path
) -> Dict[str, Path]:
    """Fetch every asset sequentially and return their local paths by name."""
    paths: Dict[str, Path] = {}
    for name, asset in assets.items():
        paths[name] = await fetch_asset(client, name, asset, asset_folder)
    return paths
