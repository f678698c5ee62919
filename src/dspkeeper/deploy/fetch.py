"""Download developer-override manifests from a tarball URI."""

from __future__ import annotations

import io
import shutil
import tarfile
import urllib.error
import urllib.request
from pathlib import Path, PurePosixPath

from dspkeeper.core.model import ManifestsConfig
from dspkeeper.errors import ManifestFetchError

_DEFAULT_TIMEOUT_S = 60.0


def _download(uri: str, timeout_s: float) -> bytes:
    request = urllib.request.Request(uri, headers={"Accept": "application/octet-stream"})
    try:
        with urllib.request.urlopen(request, timeout=timeout_s) as response:
            status = getattr(response, "status", 200)
            if status != 200:
                raise ManifestFetchError(f"error downloading manifests: {status} HTTP status")
            return response.read()
    except urllib.error.HTTPError as exc:
        raise ManifestFetchError(f"error downloading manifests: {exc.code} HTTP status") from exc
    except urllib.error.URLError as exc:
        raise ManifestFetchError(f"error downloading manifests: {exc.reason}") from exc
    except OSError as exc:
        raise ManifestFetchError(f"error downloading manifests: {exc}") from exc


def _relative_member_path(name: str, context_dir: str) -> PurePosixPath | None:
    """Strip ``<top>/<context_dir>/`` from a member name, or None if outside it."""
    parts = PurePosixPath(name).parts
    prefix = PurePosixPath(context_dir.strip("/")).parts if context_dir.strip("/") else ()
    if len(parts) < 1 + len(prefix):
        return None
    if tuple(parts[1 : 1 + len(prefix)]) != prefix:
        return None
    rest = parts[1 + len(prefix) :]
    if not rest:
        return None
    if any(part in ("..", "") or part.startswith("/") for part in rest):
        raise ManifestFetchError(f"refusing unsafe archive member: {name}")
    return PurePosixPath(*rest)


def extract_manifests(archive: bytes, dest: Path, context_dir: str) -> int:
    count = 0
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:*") as tar:
            for member in tar:
                rel = _relative_member_path(member.name, context_dir)
                if rel is None:
                    continue
                target = dest.joinpath(*rel.parts)
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                if not member.isreg():
                    continue
                handle = tar.extractfile(member)
                if handle is None:
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with handle, target.open("wb") as out:
                    shutil.copyfileobj(handle, out)
                count += 1
    except tarfile.TarError as exc:
        raise ManifestFetchError(f"invalid manifests archive: {exc}") from exc
    return count


def download_manifests(
    component: str,
    config: ManifestsConfig,
    manifest_root: Path,
    *,
    timeout_s: float = _DEFAULT_TIMEOUT_S,
) -> Path:
    """Materialize ``config.uri`` under ``<manifest_root>/<component>``.

    The archive is expected to hold a single top-level directory, as source
    forge tarballs do; only entries below ``<top>/<context_dir>`` are kept.
    """
    payload = _download(config.uri, timeout_s)
    dest = Path(manifest_root) / component
    dest.mkdir(parents=True, exist_ok=True)
    extracted = extract_manifests(payload, dest, config.context_dir)
    if extracted == 0:
        raise ManifestFetchError(
            f"no files found under '{config.context_dir}' in {config.uri}",
            component=component,
        )
    return dest
