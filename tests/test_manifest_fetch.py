import io
import tarfile
from pathlib import Path

import pytest

from dspkeeper.core.model import ManifestsConfig
from dspkeeper.deploy import fetch
from dspkeeper.deploy.fetch import download_manifests, extract_manifests
from dspkeeper.errors import ManifestFetchError


def _tarball(entries: dict[str, str | None]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
                continue
            data = content.encode("utf-8")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def test_extract_keeps_only_context_dir(tmp_path: Path) -> None:
    archive = _tarball(
        {
            "org-repo-abc123/": None,
            "org-repo-abc123/README.md": "readme",
            "org-repo-abc123/config/": None,
            "org-repo-abc123/config/base/kustomization.yaml": "resources: []\n",
            "org-repo-abc123/config/overlays/odh/kustomization.yaml": "resources: [../../base]\n",
        }
    )

    count = extract_manifests(archive, tmp_path, "config")

    assert count == 2
    assert (tmp_path / "base" / "kustomization.yaml").read_text(encoding="utf-8") == "resources: []\n"
    assert (tmp_path / "overlays" / "odh" / "kustomization.yaml").exists()
    assert not (tmp_path / "README.md").exists()


def test_extract_rejects_parent_traversal(tmp_path: Path) -> None:
    archive = _tarball({"top/manifests/../../evil.txt": "x"})
    with pytest.raises(ManifestFetchError):
        extract_manifests(archive, tmp_path, "manifests")


def test_extract_invalid_archive(tmp_path: Path) -> None:
    with pytest.raises(ManifestFetchError):
        extract_manifests(b"not a tarball", tmp_path, "manifests")


def test_download_manifests_materializes_component_tree(tmp_path: Path, monkeypatch) -> None:
    archive = _tarball({"top/manifests/overlayA/kustomization.yaml": "resources: []\n"})
    seen = []

    def fake_download(uri: str, timeout_s: float) -> bytes:
        seen.append(uri)
        return archive

    monkeypatch.setattr(fetch, "_download", fake_download)
    config = ManifestsConfig(uri="https://example.com/repo/tarball/main", source_path="overlayA")

    dest = download_manifests("dspo", config, tmp_path)

    assert seen == ["https://example.com/repo/tarball/main"]
    assert dest == tmp_path / "dspo"
    assert (tmp_path / "dspo" / "overlayA" / "kustomization.yaml").exists()


def test_download_manifests_empty_context_dir_fails(tmp_path: Path, monkeypatch) -> None:
    archive = _tarball({"top/other/file.yaml": "a: 1\n"})
    monkeypatch.setattr(fetch, "_download", lambda uri, timeout_s: archive)

    with pytest.raises(ManifestFetchError) as excinfo:
        download_manifests("dspo", ManifestsConfig(uri="https://example.com/x"), tmp_path)
    assert "manifests" in str(excinfo.value)
