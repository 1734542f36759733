"""
Composite Scope — Sharing Policy Entries
===========================================
A policy entry pairs a provider-shape matcher with an optional peer
constraint.

    ClassSpacePolicy  — package or bundle matcher (ImportPackageSpec / BundleSpec)
    ServicePolicy     — LDAP filter over service properties

match(provider, provider_composite, peer_policy) succeeds when:
    (a) the matcher accepts the provider, and
    (b) if the caller supplied a peer_policy, its peer constraint is
        satisfied by provider_composite.

PolicyVectors groups the six ordered vectors of one composite. Vectors
are tuples: they are replaced as a whole, never edited in place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple, Union

from core.composite.descriptions import (
    BundleDescription,
    ExportPackageDescription,
    ServiceReference,
)
from core.composite.filters import Filter
from core.composite.specs import (
    NO_PEER,
    BundleSpec,
    ImportPackageSpec,
    PeerConstraint,
)


class _PeerAware:
    peer: PeerConstraint

    def has_peer_constraint(self) -> bool:
        return self.peer.is_set

    def bind_parent(self, owner: Any):
        """Resolve a "<<parent>>" peer name against the declaring composite."""
        bound = self.peer.bind_parent(owner)
        if bound is self.peer:
            return self
        return replace(self, peer=bound)

    @staticmethod
    def _peer_accepts(peer_policy: Optional["Policy"], composite: Any) -> bool:
        if peer_policy is None or not peer_policy.has_peer_constraint():
            return True
        return peer_policy.peer.satisfied_by(composite)


# ══════════════════════════════════════════════════════════════
# CLASS-SPACE POLICY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClassSpacePolicy(_PeerAware):
    spec: Union[ImportPackageSpec, BundleSpec]
    peer: PeerConstraint = NO_PEER

    def __post_init__(self):
        if not isinstance(self.spec, (ImportPackageSpec, BundleSpec)):
            raise ValueError(
                "spec must be an ImportPackageSpec or a BundleSpec."
            )
        if not isinstance(self.peer, PeerConstraint):
            raise ValueError("peer must be a PeerConstraint.")

    @property
    def is_package_policy(self) -> bool:
        return isinstance(self.spec, ImportPackageSpec)

    def match(
        self,
        provider: Any,
        provider_composite: Any,
        peer_policy: Optional["Policy"] = None,
    ) -> bool:
        if isinstance(self.spec, ImportPackageSpec):
            if not isinstance(provider, ExportPackageDescription):
                return False
        elif not isinstance(provider, BundleDescription):
            return False

        if not self.spec.satisfied_by(provider):
            return False
        return self._peer_accepts(peer_policy, provider_composite)


# ══════════════════════════════════════════════════════════════
# SERVICE POLICY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ServicePolicy(_PeerAware):
    filter: Filter
    peer: PeerConstraint = NO_PEER

    def __post_init__(self):
        if isinstance(self.filter, str):
            object.__setattr__(self, "filter", Filter.parse(self.filter))
        if not isinstance(self.filter, Filter):
            raise ValueError("filter must be a Filter or filter string.")
        if not isinstance(self.peer, PeerConstraint):
            raise ValueError("peer must be a PeerConstraint.")

    def match(
        self,
        provider: Any,
        provider_composite: Any,
        peer_policy: Optional["Policy"] = None,
    ) -> bool:
        if not isinstance(provider, ServiceReference):
            return False
        if not self.filter.match(provider.properties):
            return False
        return self._peer_accepts(peer_policy, provider_composite)


Policy = Union[ClassSpacePolicy, ServicePolicy]


# ══════════════════════════════════════════════════════════════
# POLICY VECTORS
# ══════════════════════════════════════════════════════════════

def _as_vector(values, expected: type, label: str) -> Tuple:
    if values is None:
        return ()
    vector = tuple(values)
    for entry in vector:
        if not isinstance(entry, expected):
            raise ValueError(
                f"{label} entries must be {expected.__name__}, "
                f"got {type(entry).__name__}."
            )
    return vector


@dataclass(frozen=True)
class PolicyVectors:
    """The six sharing-policy vectors of one composite, in declaration order."""

    import_package: Tuple[ClassSpacePolicy, ...] = ()
    export_package: Tuple[ClassSpacePolicy, ...] = ()
    require_bundle: Tuple[ClassSpacePolicy, ...] = ()
    provide_bundle: Tuple[ClassSpacePolicy, ...] = ()
    import_service: Tuple[ServicePolicy, ...] = ()
    export_service: Tuple[ServicePolicy, ...] = ()

    def __post_init__(self):
        for name in ("import_package", "export_package",
                     "require_bundle", "provide_bundle"):
            object.__setattr__(
                self, name,
                _as_vector(getattr(self, name), ClassSpacePolicy, name),
            )
        for name in ("import_service", "export_service"):
            object.__setattr__(
                self, name,
                _as_vector(getattr(self, name), ServicePolicy, name),
            )

    @property
    def is_empty(self) -> bool:
        return not any((
            self.import_package, self.export_package,
            self.require_bundle, self.provide_bundle,
            self.import_service, self.export_service,
        ))


PolicyVectors.EMPTY = PolicyVectors()
