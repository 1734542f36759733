"""
Composite Scope - Public API
============================
Visibility of services, packages and bundles across a tree of
composites governed by explicit sharing policies.
"""

from core.composite.admin import CompositePolicyAdmin
from core.composite.classifier import ProviderKind, classify
from core.composite.declarations import (
    EXPORT_PACKAGE_POLICY,
    EXPORT_SERVICE_POLICY,
    IMPORT_PACKAGE_POLICY,
    IMPORT_SERVICE_POLICY,
    PROVIDE_BUNDLE_POLICY,
    REQUIRE_BUNDLE_POLICY,
    parse_policy_vectors,
    validate_composite_manifest,
)
from core.composite.descriptions import (
    ROOT_COMPOSITE_ID,
    SYSTEM_BUNDLE_ID,
    Bundle,
    BundleDescription,
    BundleRegistry,
    ExportPackageDescription,
    InMemoryBundleRegistry,
    ServiceReference,
)
from core.composite.exceptions import (
    CompositeNotFoundError,
    CompositeOrphanedError,
    CompositeScopeError,
    ManifestValidationError,
    OrphanWithChildrenError,
    PolicyDeclarationError,
    ScopeArgumentError,
    ScopeConfigurationError,
    UnknownProviderError,
)
from core.composite.filters import Filter, InvalidFilterError
from core.composite.manager import CompositeManager
from core.composite.node import CompositeInfo, NodeState
from core.composite.policies import ClassSpacePolicy, PolicyVectors, ServicePolicy
from core.composite.scope_policy import ScopePolicy
from core.composite.settings import ScopeSettings, load_scope_settings
from core.composite.specs import (
    PARENT_PEER,
    BundleSpec,
    ImportPackageSpec,
    PeerConstraint,
)
from core.composite.versions import (
    EMPTY_VERSION,
    InvalidVersionError,
    Version,
    VersionRange,
)

__all__ = [
    # ── Engine ──
    "ScopePolicy",
    "CompositeManager",
    "CompositeInfo",
    "NodeState",
    "CompositePolicyAdmin",
    # ── Framework records ──
    "ROOT_COMPOSITE_ID",
    "SYSTEM_BUNDLE_ID",
    "Bundle",
    "BundleDescription",
    "BundleRegistry",
    "ExportPackageDescription",
    "InMemoryBundleRegistry",
    "ServiceReference",
    # ── Policies ──
    "ClassSpacePolicy",
    "ServicePolicy",
    "PolicyVectors",
    "ImportPackageSpec",
    "BundleSpec",
    "PeerConstraint",
    "PARENT_PEER",
    "Filter",
    "Version",
    "VersionRange",
    "EMPTY_VERSION",
    "ProviderKind",
    "classify",
    # ── Declarations ──
    "IMPORT_PACKAGE_POLICY",
    "EXPORT_PACKAGE_POLICY",
    "REQUIRE_BUNDLE_POLICY",
    "PROVIDE_BUNDLE_POLICY",
    "IMPORT_SERVICE_POLICY",
    "EXPORT_SERVICE_POLICY",
    "parse_policy_vectors",
    "validate_composite_manifest",
    # ── Settings ──
    "ScopeSettings",
    "load_scope_settings",
    # ── Errors ──
    "CompositeScopeError",
    "ScopeArgumentError",
    "UnknownProviderError",
    "CompositeNotFoundError",
    "CompositeOrphanedError",
    "OrphanWithChildrenError",
    "PolicyDeclarationError",
    "ManifestValidationError",
    "ScopeConfigurationError",
    "InvalidFilterError",
    "InvalidVersionError",
]
