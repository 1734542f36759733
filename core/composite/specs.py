"""
Composite Scope — Provider-Shape Specifications
==================================================
Pure predicates over providers:

    ImportPackageSpec  — matches an ExportPackageDescription
    BundleSpec         — matches a BundleDescription
    PeerConstraint     — matches the composite that supplies a match

PARENT_PEER ("<<parent>>") as a peer name designates the parent of the
composite that declares the policy. It is resolved with bind_parent().
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from core.composite.descriptions import (
    BundleDescription,
    ExportPackageDescription,
)
from core.composite.versions import VersionRange

PARENT_PEER = "<<parent>>"
WILDCARD = "*"


# ══════════════════════════════════════════════════════════════
# PEER CONSTRAINT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PeerConstraint:
    """
    Restricts which neighbouring composite may satisfy a match.

    composite_id is only set by bind_parent(); it pins the constraint
    to one concrete composite.
    """

    symbolic_name: Optional[str] = None
    version_range: Optional[VersionRange] = None
    composite_id: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.symbolic_name is not None or self.version_range is not None

    @property
    def names_parent(self) -> bool:
        return self.symbolic_name == PARENT_PEER

    def bind_parent(self, owner: Any) -> "PeerConstraint":
        if not self.names_parent or self.composite_id is not None:
            return self
        parent = owner.parent
        # -1 never matches a composite id
        return replace(self, composite_id=parent.id if parent is not None else -1)

    def satisfied_by(self, composite: Any) -> bool:
        # name and version must come from the same update
        name, version = composite.identity()
        if self.names_parent:
            if self.composite_id is None or composite.id != self.composite_id:
                return False
        elif self.symbolic_name is not None:
            if name != self.symbolic_name:
                return False

        if self.version_range is not None:
            return self.version_range.includes(version)
        return True


NO_PEER = PeerConstraint()


# ══════════════════════════════════════════════════════════════
# IMPORT PACKAGE SPEC
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ImportPackageSpec:
    name: str
    version_range: Optional[VersionRange] = None
    bundle_symbolic_name: Optional[str] = None
    bundle_version_range: Optional[VersionRange] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        object.__setattr__(
            self, "attributes", MappingProxyType(dict(self.attributes))
        )

    def __hash__(self) -> int:
        return hash((self.name, self.version_range, self.bundle_symbolic_name))

    def satisfied_by(self, export: ExportPackageDescription) -> bool:
        if export.name != self.name:
            return False
        if self.version_range is not None:
            if not self.version_range.includes(export.version):
                return False

        supplier = export.supplier
        if self.bundle_symbolic_name is not None:
            if supplier.symbolic_name != self.bundle_symbolic_name:
                return False
        if self.bundle_version_range is not None:
            if not self.bundle_version_range.includes(supplier.version):
                return False

        for key, expected in self.attributes.items():
            if key not in export.attributes:
                return False
            if str(export.attributes[key]) != str(expected):
                return False
        return True


# ══════════════════════════════════════════════════════════════
# BUNDLE SPEC
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BundleSpec:
    """
    Require/provide bundle matcher.

    With wildcards on, "*" matches any bundle and "prefix.*" matches
    any symbolic name starting with "prefix.".
    """

    symbolic_name: str
    version_range: Optional[VersionRange] = None
    wildcards: bool = True

    def __post_init__(self):
        if not self.symbolic_name or not isinstance(self.symbolic_name, str):
            raise ValueError("symbolic_name must be a non-empty string.")

    def names(self, symbolic_name: str) -> bool:
        if not self.wildcards:
            return symbolic_name == self.symbolic_name
        if self.symbolic_name == WILDCARD:
            return True
        if self.symbolic_name.endswith(".*"):
            return symbolic_name.startswith(self.symbolic_name[:-1])
        return symbolic_name == self.symbolic_name

    def satisfied_by(self, description: BundleDescription) -> bool:
        if not self.names(description.symbolic_name):
            return False
        if self.version_range is not None:
            return self.version_range.includes(description.version)
        return True
