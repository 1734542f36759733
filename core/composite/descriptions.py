"""
Composite Scope — Framework Records and Bundle Registry
==========================================================
Lightweight stand-ins for the host framework objects the engine reads:

    Bundle                    (bundle_id, composite_id)
    BundleDescription         (bundle_id, symbolic_name, version, composite_id)
    ExportPackageDescription  (name, version, supplier, attributes)
    ServiceReference          (registering_bundle, properties)

The registry is the only lookup the engine performs against the
outside world: (composite_id, bundle_id) → Bundle (None when
uninstalled). Bundle ids are only unique inside one composite; every
composite has its own system bundle with id 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Protocol

from core.composite.versions import EMPTY_VERSION, Version

ROOT_COMPOSITE_ID = 0
SYSTEM_BUNDLE_ID = 0

OBJECT_CLASS = "objectClass"


def _frozen_mapping(values: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


# ══════════════════════════════════════════════════════════════
# BUNDLE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Bundle:
    bundle_id: int
    composite_id: int
    symbolic_name: str = ""
    version: Version = EMPTY_VERSION

    def __post_init__(self):
        if not isinstance(self.bundle_id, int) or self.bundle_id < 0:
            raise ValueError("bundle_id must be a non-negative int.")
        if not isinstance(self.composite_id, int) or self.composite_id < 0:
            raise ValueError("composite_id must be a non-negative int.")

    @property
    def is_system_bundle(self) -> bool:
        return self.bundle_id == SYSTEM_BUNDLE_ID

    @property
    def is_root_system_bundle(self) -> bool:
        return (
            self.bundle_id == SYSTEM_BUNDLE_ID
            and self.composite_id == ROOT_COMPOSITE_ID
        )

    def describe(self) -> "BundleDescription":
        return BundleDescription(
            bundle_id=self.bundle_id,
            symbolic_name=self.symbolic_name,
            version=self.version,
            composite_id=self.composite_id,
        )


# ══════════════════════════════════════════════════════════════
# DESCRIPTIONS (resolver view)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BundleDescription:
    """Resolver description of a bundle. Its own supplier."""

    bundle_id: int
    symbolic_name: str
    version: Version = EMPTY_VERSION
    composite_id: int = ROOT_COMPOSITE_ID

    @property
    def supplier(self) -> "BundleDescription":
        return self

    @property
    def name(self) -> str:
        return self.symbolic_name


@dataclass(frozen=True)
class ExportPackageDescription:
    name: str
    version: Version
    supplier: BundleDescription
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not isinstance(self.supplier, BundleDescription):
            raise ValueError("supplier must be a BundleDescription.")
        object.__setattr__(
            self, "attributes", _frozen_mapping(self.attributes)
        )

    def __hash__(self) -> int:
        return hash((self.name, self.version, self.supplier))


# ══════════════════════════════════════════════════════════════
# SERVICE REFERENCE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class ServiceReference:
    """
    Reference to a registered service.

    The registering bundle is held directly so it stays reachable
    after the service is unregistered.
    """

    registering_bundle: Bundle
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.registering_bundle, Bundle):
            raise ValueError("registering_bundle must be a Bundle.")
        object.__setattr__(
            self, "properties", _frozen_mapping(self.properties)
        )

    @property
    def object_classes(self) -> tuple[str, ...]:
        value = self.properties.get(OBJECT_CLASS, ())
        if isinstance(value, str):
            return (value,)
        return tuple(value)


# ══════════════════════════════════════════════════════════════
# BUNDLE REGISTRY
# ══════════════════════════════════════════════════════════════

class BundleRegistry(Protocol):
    def get_bundle(self, composite_id: int, bundle_id: int) -> Bundle | None:
        ...

    def get_bundles_in_composite(
        self, composite_id: int
    ) -> tuple[Bundle, ...]:
        ...


class InMemoryBundleRegistry:
    """
    Thread-safe in-memory registry used by tests/bootstrap.
    """

    def __init__(self, bundles: Iterable[Bundle] | None = None):
        self._bundles: dict[tuple[int, int], Bundle] = {}
        self._lock = Lock()
        for bundle in bundles or ():
            self.install(bundle)

    def install(self, bundle: Bundle) -> Bundle:
        if not isinstance(bundle, Bundle):
            raise TypeError(
                f"Expected Bundle, got {type(bundle).__name__}."
            )
        key = (bundle.composite_id, bundle.bundle_id)
        with self._lock:
            if key in self._bundles:
                raise ValueError(
                    f"Duplicate bundle_id '{bundle.bundle_id}' "
                    f"in composite '{bundle.composite_id}'."
                )
            self._bundles[key] = bundle
        return bundle

    def uninstall(self, composite_id: int, bundle_id: int) -> Bundle | None:
        with self._lock:
            return self._bundles.pop((composite_id, bundle_id), None)

    def get_bundle(self, composite_id: int, bundle_id: int) -> Bundle | None:
        with self._lock:
            return self._bundles.get((composite_id, bundle_id))

    def get_bundles_in_composite(
        self, composite_id: int
    ) -> tuple[Bundle, ...]:
        with self._lock:
            members = [
                b for b in self._bundles.values()
                if b.composite_id == composite_id
            ]
        return tuple(sorted(members, key=lambda b: b.bundle_id))
