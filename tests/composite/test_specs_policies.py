"""
Tests for core.composite.specs and core.composite.policies.
"""

import pytest

from core.composite.descriptions import (
    Bundle,
    BundleDescription,
    ExportPackageDescription,
    ServiceReference,
)
from core.composite.filters import Filter
from core.composite.node import CompositeInfo
from core.composite.policies import ClassSpacePolicy, PolicyVectors, ServicePolicy
from core.composite.specs import (
    NO_PEER,
    PARENT_PEER,
    BundleSpec,
    ImportPackageSpec,
    PeerConstraint,
)
from core.composite.versions import Version, VersionRange


ROOT = CompositeInfo(0, "system.bundle")
A = CompositeInfo(1, "A", Version(1), parent=ROOT)
B = CompositeInfo(2, "B", Version(1, 5), parent=A)

SUPPLIER = BundleDescription(10, "org.example.impl", Version(2, 1))
FOO = ExportPackageDescription(
    "foo", Version(1, 2), SUPPLIER, {"vendor": "acme"}
)


# ── PeerConstraint ───────────────────────────────────────────

class TestPeerConstraint:
    def test_unset_constraint_accepts_anyone(self):
        assert not NO_PEER.is_set
        assert NO_PEER.satisfied_by(A)

    def test_name_and_range(self):
        peer = PeerConstraint("A", VersionRange.parse("[1,2)"))
        assert peer.is_set
        assert peer.satisfied_by(A)
        assert not peer.satisfied_by(B)

    def test_range_only(self):
        peer = PeerConstraint(version_range=VersionRange.parse("[1.5,2)"))
        assert peer.is_set
        assert peer.satisfied_by(B)
        assert not peer.satisfied_by(A)

    def test_unbound_parent_sentinel_never_matches(self):
        peer = PeerConstraint(PARENT_PEER)
        assert peer.names_parent
        assert not peer.satisfied_by(A)

    def test_bind_parent_pins_parent_id(self):
        bound = PeerConstraint(PARENT_PEER).bind_parent(B)
        assert bound.composite_id == A.id
        assert bound.satisfied_by(A)
        assert not bound.satisfied_by(B)

    def test_bind_parent_at_root_never_matches(self):
        bound = PeerConstraint(PARENT_PEER).bind_parent(ROOT)
        assert bound.composite_id == -1
        assert not bound.satisfied_by(ROOT)

    def test_bind_parent_without_sentinel_is_identity(self):
        peer = PeerConstraint("A")
        assert peer.bind_parent(B) is peer


# ── ImportPackageSpec ────────────────────────────────────────

class TestImportPackageSpec:
    def test_name_only(self):
        assert ImportPackageSpec("foo").satisfied_by(FOO)
        assert not ImportPackageSpec("bar").satisfied_by(FOO)

    def test_version_range(self):
        assert ImportPackageSpec(
            "foo", VersionRange.parse("[1.0,2.0)")
        ).satisfied_by(FOO)
        assert not ImportPackageSpec(
            "foo", VersionRange.parse("[1.5,2.0)")
        ).satisfied_by(FOO)

    def test_supplier_constraints(self):
        assert ImportPackageSpec(
            "foo",
            bundle_symbolic_name="org.example.impl",
            bundle_version_range=VersionRange.parse("[2,3)"),
        ).satisfied_by(FOO)
        assert not ImportPackageSpec(
            "foo", bundle_symbolic_name="org.other"
        ).satisfied_by(FOO)
        assert not ImportPackageSpec(
            "foo", bundle_version_range=VersionRange.parse("[3,4)")
        ).satisfied_by(FOO)

    def test_attributes(self):
        assert ImportPackageSpec("foo", attributes={"vendor": "acme"}).satisfied_by(FOO)
        assert not ImportPackageSpec("foo", attributes={"vendor": "other"}).satisfied_by(FOO)
        assert not ImportPackageSpec("foo", attributes={"region": "eu"}).satisfied_by(FOO)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            ImportPackageSpec("")


# ── BundleSpec ───────────────────────────────────────────────

class TestBundleSpec:
    def test_exact_name_and_range(self):
        spec = BundleSpec("org.example.impl", VersionRange.parse("[2,3)"))
        assert spec.satisfied_by(SUPPLIER)
        assert not BundleSpec(
            "org.example.impl", VersionRange.parse("[3,4)")
        ).satisfied_by(SUPPLIER)

    def test_wildcards(self):
        assert BundleSpec("*").names("anything")
        assert BundleSpec("org.example.*").names("org.example.api")
        assert not BundleSpec("org.example.*").names("org.other.api")

    def test_wildcards_disabled(self):
        spec = BundleSpec("org.example.*", wildcards=False)
        assert not spec.names("org.example.api")
        assert spec.names("org.example.*")


# ── ClassSpacePolicy ─────────────────────────────────────────

class TestClassSpacePolicy:
    def test_package_policy_matches_exports_only(self):
        policy = ClassSpacePolicy(ImportPackageSpec("foo"))
        assert policy.is_package_policy
        assert policy.match(FOO, A)
        assert not policy.match(SUPPLIER, A)

    def test_bundle_policy_matches_descriptions_only(self):
        policy = ClassSpacePolicy(BundleSpec("org.example.impl"))
        assert not policy.is_package_policy
        assert policy.match(SUPPLIER, A)
        assert not policy.match(FOO, A)

    def test_caller_peer_policy_applies_to_provider_composite(self):
        export = ClassSpacePolicy(ImportPackageSpec("foo"))
        wants_a = ClassSpacePolicy(ImportPackageSpec("foo"), PeerConstraint("A"))
        assert export.match(FOO, A, wants_a)
        assert not export.match(FOO, B, wants_a)
        assert export.match(FOO, B, None)

    def test_bind_parent_returns_resolved_copy(self):
        policy = ClassSpacePolicy(ImportPackageSpec("foo"), PeerConstraint(PARENT_PEER))
        bound = policy.bind_parent(B)
        assert bound is not policy
        assert bound.peer.composite_id == A.id
        assert policy.peer.composite_id is None

    def test_invalid_spec_rejected(self):
        with pytest.raises(ValueError):
            ClassSpacePolicy("foo")


# ── ServicePolicy ────────────────────────────────────────────

class TestServicePolicy:
    def test_filter_text_is_parsed(self):
        policy = ServicePolicy("(objectClass=org.example.X)")
        assert isinstance(policy.filter, Filter)

    def test_match(self):
        registrant = Bundle(10, 1)
        policy = ServicePolicy("(objectClass=org.example.X)")
        assert policy.match(ServiceReference(registrant, {"objectClass": ["org.example.X"]}), A)
        assert not policy.match(ServiceReference(registrant, {"objectClass": ["org.example.Y"]}), A)
        assert not policy.match(FOO, A)

    def test_peer(self):
        policy = ServicePolicy("(objectClass=*)", PeerConstraint("A"))
        assert policy.has_peer_constraint()
        assert not ServicePolicy("(objectClass=*)").has_peer_constraint()


# ── PolicyVectors ────────────────────────────────────────────

class TestPolicyVectors:
    def test_empty(self):
        assert PolicyVectors.EMPTY.is_empty
        assert PolicyVectors.EMPTY.import_service == ()

    def test_lists_become_tuples(self):
        vectors = PolicyVectors(import_package=[ClassSpacePolicy(ImportPackageSpec("foo"))])
        assert isinstance(vectors.import_package, tuple)
        assert not vectors.is_empty

    def test_wrong_entry_kind_rejected(self):
        with pytest.raises(ValueError):
            PolicyVectors(import_package=[ServicePolicy("(a=b)")])
        with pytest.raises(ValueError):
            PolicyVectors(export_service=[ClassSpacePolicy(ImportPackageSpec("foo"))])
