# --- test import path bootstrap (src/ layout) ---
import sys as _sys
from pathlib import Path as _Path

_SRC = _Path(__file__).resolve().parents[1] / "src"
if _SRC.is_dir():
    _p = str(_SRC)
    if _p not in _sys.path:
        _sys.path.insert(0, _p)
# --- end bootstrap ---

import sys
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def dspk_path() -> Path:
    repo_root = Path(__file__).resolve().parents[1]
    local = repo_root / ".venv" / "bin" / "dspk"
    if local.exists():
        return local

    # Use a repo-local shim when local venv entrypoint is unavailable.
    shim_dir = Path(tempfile.mkdtemp(prefix="dspk-shim-"))
    shim = shim_dir / "dspk"
    shim.write_text(
        f"""#!/usr/bin/env bash
set -Eeuo pipefail
export PYTHONPATH=\"{repo_root}/src${{PYTHONPATH:+:${{PYTHONPATH}}}}\"
exec \"{sys.executable}\" -c 'import sys; from dspkeeper.cli import main; raise SystemExit(main())' \"$@\"
""",
        encoding="utf-8",
    )
    shim.chmod(0o755)
    return shim


@pytest.fixture
def manifest_root(tmp_path: Path) -> Path:
    root = tmp_path / "manifests"
    component = root / "data-science-pipelines-operator"
    (component / "base").mkdir(parents=True)
    (component / "overlays" / "odh").mkdir(parents=True)
    (component / "overlays" / "rhoai").mkdir(parents=True)
    (component / "base" / "params.env").write_text(
        "IMAGES_DSPO=quay.io/old/dspo:1\nIMAGES_APISERVER=quay.io/old/api:1\n",
        encoding="utf-8",
    )
    apps = root / "monitoring" / "prometheus" / "apps"
    apps.mkdir(parents=True)
    (apps / "prometheus-configs.yaml").write_text(
        """apiVersion: v1
kind: ConfigMap
metadata:
  name: prometheus
data:
  prometheus.yml: |
    global:
      scrape_interval: 30s
    rule_files:
      - operator-recording.rules
""",
        encoding="utf-8",
    )
    return root
