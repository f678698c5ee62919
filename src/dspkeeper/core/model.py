"""Component descriptor and platform context loaded from the platform document."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from dspkeeper.core.platform import ManagementState, Platform
from dspkeeper.errors import SpecValidationError

DEFAULT_MANIFEST_ROOT = "/opt/manifests"
DEFAULT_APPLICATIONS_NAMESPACE = "opendatahub"
DEFAULT_MONITORING_NAMESPACE = "opendatahub"
COMPONENT_KEY = "datasciencepipelines"


@dataclass(frozen=True)
class ManifestsConfig:
    uri: str
    context_dir: str = "manifests"
    source_path: str = ""


@dataclass(frozen=True)
class DevFlags:
    manifests: list[ManifestsConfig] = field(default_factory=list)


@dataclass(frozen=True)
class ComponentDescriptor:
    management_state: ManagementState = ManagementState.REMOVED
    dev_flags: DevFlags | None = None

    @property
    def enabled(self) -> bool:
        return self.management_state == ManagementState.MANAGED

    @property
    def manifest_override(self) -> ManifestsConfig | None:
        if self.dev_flags is None or not self.dev_flags.manifests:
            return None
        return self.dev_flags.manifests[0]


@dataclass(frozen=True)
class MonitoringSpec:
    management_state: ManagementState = ManagementState.REMOVED
    namespace: str = DEFAULT_MONITORING_NAMESPACE

    @property
    def enabled(self) -> bool:
        return self.management_state == ManagementState.MANAGED


@dataclass(frozen=True)
class PlatformContext:
    platform: Platform = Platform.UNKNOWN
    applications_namespace: str = DEFAULT_APPLICATIONS_NAMESPACE
    monitoring: MonitoringSpec = field(default_factory=MonitoringSpec)
    manifest_root: Path = Path(DEFAULT_MANIFEST_ROOT)


@dataclass(frozen=True)
class ManifestLocation:
    path: Path
    overlay: str


def default_manifest_root() -> Path:
    raw = (os.environ.get("DSPK_MANIFESTS_PATH") or "").strip()
    return Path(raw) if raw else Path(DEFAULT_MANIFEST_ROOT)


def _expect_dict(value: object, *, path: str) -> dict:
    if not isinstance(value, dict):
        raise SpecValidationError(f"{path} must be an object")
    return value


def _optional_str(value: object, *, path: str, default: str = "") -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise SpecValidationError(f"{path} must be a string")
    return value.strip() or default


def _parse_manifests_config(value: object, *, path: str) -> ManifestsConfig:
    item = _expect_dict(value, path=path)
    uri = item.get("uri")
    if not isinstance(uri, str) or not uri.strip():
        raise SpecValidationError(f"{path}.uri is required and must be non-empty string")
    return ManifestsConfig(
        uri=uri.strip(),
        context_dir=_optional_str(item.get("contextDir"), path=f"{path}.contextDir", default="manifests"),
        source_path=_optional_str(item.get("sourcePath"), path=f"{path}.sourcePath"),
    )


def parse_component(payload: object, *, source: str = "component") -> ComponentDescriptor:
    if payload is None:
        return ComponentDescriptor()
    data = _expect_dict(payload, path=source)
    dev_flags: DevFlags | None = None
    raw_flags = data.get("devFlags")
    if raw_flags is not None:
        flags = _expect_dict(raw_flags, path=f"{source}.devFlags")
        raw_manifests = flags.get("manifests", [])
        if not isinstance(raw_manifests, list):
            raise SpecValidationError(f"{source}.devFlags.manifests must be an array")
        dev_flags = DevFlags(
            manifests=[
                _parse_manifests_config(entry, path=f"{source}.devFlags.manifests[{idx}]")
                for idx, entry in enumerate(raw_manifests)
            ]
        )
    return ComponentDescriptor(
        management_state=ManagementState.parse(data.get("managementState")),
        dev_flags=dev_flags,
    )


def parse_context(
    payload: object,
    *,
    platform: object = None,
    manifest_root: Path | None = None,
    source: str = "dscInitialization",
) -> PlatformContext:
    data = _expect_dict(payload or {}, path=source)
    monitoring_raw = _expect_dict(data.get("monitoring") or {}, path=f"{source}.monitoring")
    monitoring = MonitoringSpec(
        management_state=ManagementState.parse(monitoring_raw.get("managementState")),
        namespace=_optional_str(
            monitoring_raw.get("namespace"),
            path=f"{source}.monitoring.namespace",
            default=DEFAULT_MONITORING_NAMESPACE,
        ),
    )
    return PlatformContext(
        platform=Platform.parse(platform),
        applications_namespace=_optional_str(
            data.get("applicationsNamespace"),
            path=f"{source}.applicationsNamespace",
            default=DEFAULT_APPLICATIONS_NAMESPACE,
        ),
        monitoring=monitoring,
        manifest_root=manifest_root if manifest_root is not None else default_manifest_root(),
    )


def parse_document(
    payload: object,
    *,
    source: str,
    manifest_root: Path | None = None,
) -> tuple[ComponentDescriptor, PlatformContext]:
    doc = _expect_dict(payload, path=source)
    cluster = _expect_dict(doc.get("dataScienceCluster") or {}, path=f"{source}: dataScienceCluster")
    components = _expect_dict(cluster.get("components") or {}, path=f"{source}: dataScienceCluster.components")
    descriptor = parse_component(
        components.get(COMPONENT_KEY),
        source=f"{source}: components.{COMPONENT_KEY}",
    )
    context = parse_context(
        doc.get("dscInitialization"),
        platform=doc.get("platform"),
        manifest_root=manifest_root,
        source=f"{source}: dscInitialization",
    )
    return descriptor, context


def load_document(
    path: Path,
    *,
    manifest_root: Path | None = None,
) -> tuple[ComponentDescriptor, PlatformContext]:
    """Load a YAML or JSON platform document; JSON parses as YAML."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SpecValidationError(f"platform document not found: {path}") from exc
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecValidationError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SpecValidationError(f"{path}: top-level document must be an object")
    return parse_document(payload, source=str(path), manifest_root=manifest_root)
