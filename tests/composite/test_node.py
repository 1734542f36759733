"""
Tests for core.composite.node — CompositeInfo structure, matching and
atomic update.
"""

import pytest

from core.composite.declarations import parse_policy_vectors
from core.composite.descriptions import (
    BundleDescription,
    ExportPackageDescription,
)
from core.composite.exceptions import (
    CompositeOrphanedError,
    OrphanWithChildrenError,
    ScopeArgumentError,
    UnknownProviderError,
)
from core.composite.node import CompositeInfo, NodeState
from core.composite.versions import Version


SUPPLIER = BundleDescription(10, "org.example.impl", Version(1))


def _export(name, version):
    return ExportPackageDescription(name, Version.parse(version), SUPPLIER)


def _vectors(**headers):
    return parse_policy_vectors(
        {f"Composite-{k}": v for k, v in headers.items()}
    )


@pytest.fixture
def root():
    return CompositeInfo(0, "system.bundle")


def _child(parent, composite_id, name="", vectors=None, version=None):
    node = CompositeInfo(composite_id, name, version, parent=parent, vectors=vectors)
    parent.add_child(node)
    return node


# ── Construction ─────────────────────────────────────────────

class TestConstruction:
    def test_root(self, root):
        assert root.id == 0
        assert root.is_root
        assert root.parent is None
        assert root.state == NodeState.INSTALLED
        assert root.vectors.is_empty

    def test_non_root_needs_parent(self):
        with pytest.raises(ScopeArgumentError):
            CompositeInfo(3, "orphan")

    def test_child_id_must_exceed_parent(self, root):
        a = _child(root, 5)
        with pytest.raises(ScopeArgumentError):
            CompositeInfo(4, parent=a)

    def test_negative_id(self):
        with pytest.raises(ScopeArgumentError):
            CompositeInfo(-1)

    def test_add_child_checks_parent_link(self, root):
        a = _child(root, 1)
        stray = CompositeInfo(2, parent=a)
        with pytest.raises(ScopeArgumentError):
            root.add_child(stray)

    def test_defaults(self, root):
        a = _child(root, 1)
        assert a.name == ""
        assert a.version == Version()
        assert a.identity() == ("", Version())


# ── Children ─────────────────────────────────────────────────

class TestChildren:
    def test_insertion_order_snapshot(self, root):
        a = _child(root, 1)
        s = _child(root, 2)
        snapshot = root.children()
        assert snapshot == (a, s)
        root.remove_child(a)
        assert snapshot == (a, s)
        assert root.children() == (s,)

    def test_no_children(self, root):
        assert root.no_children()
        _child(root, 1)
        assert not root.no_children()

    def test_find_descendant_by_id(self, root):
        a = _child(root, 1)
        s = _child(root, 2)
        b = _child(a, 3)
        c = _child(b, 7)
        assert root.find_descendant_by_id(3) is b
        assert root.find_descendant_by_id(7) is c
        assert root.find_descendant_by_id(2) is s
        assert root.find_descendant_by_id(99) is None
        assert s.find_descendant_by_id(3) is None


# ── Matching ─────────────────────────────────────────────────

class TestMatching:
    def test_empty_vectors_match_nothing(self, root):
        a = _child(root, 1)
        assert a.match_import(_export("foo", "1.0")) is None
        assert a.match_export(_export("foo", "1.0")) is None

    def test_first_matching_import_wins(self, root):
        a = _child(root, 1, vectors=_vectors(
            ImportPackage='foo;version="[1,2)";peer-symbolic-name=X, foo'
        ))
        first = a.match_import(_export("foo", "1.5"))
        assert first is a.vectors.import_package[0]
        second = a.match_import(_export("foo", "3.0"))
        assert second is a.vectors.import_package[1]

    def test_import_binds_parent_sentinel(self, root):
        a = _child(root, 1)
        b = _child(a, 2, vectors=_vectors(
            ImportPackage="bar;peer-symbolic-name=<<parent>>"
        ))
        matched = b.match_import(_export("bar", "1.0"))
        assert matched.peer.composite_id == a.id
        assert b.vectors.import_package[0].peer.composite_id is None

    def test_export_honours_caller_peer(self, root):
        a = _child(root, 1, "A", vectors=_vectors(ExportPackage="foo"))
        wants_z = _child(root, 2, vectors=_vectors(
            ImportPackage="foo;peer-symbolic-name=Z"
        )).vectors.import_package[0]
        assert a.match_export(_export("foo", "1.0")) is not None
        assert a.match_export(_export("foo", "1.0"), wants_z) is None

    def test_routes_by_provider_kind(self, root):
        a = _child(root, 1, vectors=_vectors(
            RequireBundle="org.example.*", ExportPackage="foo"
        ))
        assert a.match_import(SUPPLIER) is a.vectors.require_bundle[0]
        assert a.match_import(_export("foo", "1")) is None
        assert a.match_export(SUPPLIER) is None

    def test_unknown_provider(self, root):
        a = _child(root, 1)
        with pytest.raises(UnknownProviderError):
            a.match_import("foo")

    def test_has_bundle_policy_equivalent(self, root):
        a = _child(root, 1, vectors=_vectors(
            RequireBundle="org.example.*",
            ProvideBundle="org.other.api",
            ImportPackage="org.pkg",
        ))
        assert a.has_bundle_policy_equivalent("org.example.impl")
        assert a.has_bundle_policy_equivalent("org.other.api")
        assert not a.has_bundle_policy_equivalent("org.pkg")


# ── Update ───────────────────────────────────────────────────

class TestUpdate:
    def test_update_replaces_identity_and_vectors(self, root):
        a = _child(root, 1, "A", version=Version(1))
        fresh = CompositeInfo(
            1, "A2", Version(2), parent=root,
            vectors=_vectors(ExportPackage="foo"),
        )
        a.update(fresh)
        assert a.identity() == ("A2", Version(2))
        assert a.match_export(_export("foo", "1")) is not None
        assert a.state == NodeState.INSTALLED

    def test_update_has_no_observable_intermediate_state(self):
        assert NodeState.ALL == {NodeState.INSTALLED, NodeState.ORPHANED}

    def test_update_requires_same_id(self, root):
        a = _child(root, 1)
        with pytest.raises(ScopeArgumentError):
            a.update(CompositeInfo(2, parent=root))

    def test_update_requires_composite_info(self, root):
        a = _child(root, 1)
        with pytest.raises(ScopeArgumentError):
            a.update(None)

    def test_update_after_orphan(self, root):
        a = _child(root, 1)
        a.orphan()
        with pytest.raises(CompositeOrphanedError):
            a.update(CompositeInfo(1, parent=root))


# ── Orphan ───────────────────────────────────────────────────

class TestOrphan:
    def test_orphan_detaches(self, root):
        a = _child(root, 1)
        a.orphan()
        assert a.state == NodeState.ORPHANED
        assert root.no_children()
        assert root.find_descendant_by_id(1) is None

    def test_orphan_is_idempotent(self, root):
        a = _child(root, 1)
        a.orphan()
        a.orphan()
        assert a.state == NodeState.ORPHANED

    def test_orphan_with_children(self, root):
        a = _child(root, 1)
        _child(a, 2)
        with pytest.raises(OrphanWithChildrenError) as exc:
            a.orphan()
        assert exc.value.child_ids == (2,)
        assert a.state == NodeState.INSTALLED

    def test_root_cannot_be_orphaned(self, root):
        with pytest.raises(ScopeArgumentError):
            root.orphan()

    def test_repr(self, root):
        a = _child(root, 1, "A", version=Version(1, 2))
        assert repr(a) == "CompositeInfo(id=1, name='A', version=1.2.0)"
