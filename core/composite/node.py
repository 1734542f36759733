"""
Composite Scope — Composite Node (CompositeInfo)
===================================================
One node per composite. Owns the composite's identity, its six
sharing-policy vectors and its place in the tree.

Concurrency:
- Identity + vectors live in one immutable snapshot, swapped by
  update() under the node lock. Readers see the old or the new
  snapshot, never a mix.
- The child list has its own lock; iteration works on a copy.
- The parent link is fixed at construction and read without a lock.

Lifecycle:
    INSTALLED ──update()──▶ INSTALLED (snapshot swapped)
    INSTALLED ──orphan()──▶ ORPHANED (terminal)
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock, RLock
from typing import Any, Optional, Tuple

from core.composite import traversal
from core.composite.classifier import classify, export_vector, import_vector
from core.composite.descriptions import ROOT_COMPOSITE_ID
from core.composite.exceptions import (
    CompositeOrphanedError,
    OrphanWithChildrenError,
    ScopeArgumentError,
)
from core.composite.policies import Policy, PolicyVectors
from core.composite.versions import EMPTY_VERSION, Version


class NodeState:
    INSTALLED = "INSTALLED"
    ORPHANED = "ORPHANED"

    ALL = frozenset({"INSTALLED", "ORPHANED"})


@dataclass(frozen=True)
class _Snapshot:
    name: str
    version: Version
    vectors: PolicyVectors


class CompositeInfo:
    """
    Node of the composite tree.

    Usage:
        root = CompositeInfo(0, "system.bundle")
        child = CompositeInfo(1, "A", Version(1), parent=root, vectors=vectors)
        root.add_child(child)
    """

    def __init__(
        self,
        composite_id: int,
        symbolic_name: str = "",
        version: Optional[Version] = None,
        parent: Optional["CompositeInfo"] = None,
        vectors: Optional[PolicyVectors] = None,
    ):
        if not isinstance(composite_id, int) or composite_id < 0:
            raise ScopeArgumentError(
                "composite_id must be a non-negative int."
            )
        if parent is None and composite_id != ROOT_COMPOSITE_ID:
            raise ScopeArgumentError(
                f"Composite '{composite_id}' must have a parent. "
                f"Only the root composite has none."
            )
        if parent is not None and composite_id <= parent.id:
            raise ScopeArgumentError(
                f"Composite id '{composite_id}' must be greater than "
                f"its parent id '{parent.id}'."
            )

        self._id = composite_id
        self._parent = parent
        self._lock = RLock()
        self._snapshot = _Snapshot(
            name=symbolic_name or "",
            version=version if version is not None else EMPTY_VERSION,
            vectors=vectors if vectors is not None else PolicyVectors.EMPTY,
        )
        self._state = NodeState.INSTALLED
        self._children: dict[int, CompositeInfo] = {}
        self._children_lock = Lock()

    # ══════════════════════════════════════════════════════════
    # IDENTITY
    # ══════════════════════════════════════════════════════════

    @property
    def id(self) -> int:
        return self._id

    @property
    def parent(self) -> Optional["CompositeInfo"]:
        return self._parent

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def name(self) -> str:
        with self._lock:
            return self._snapshot.name

    @property
    def version(self) -> Version:
        with self._lock:
            return self._snapshot.version

    @property
    def vectors(self) -> PolicyVectors:
        with self._lock:
            return self._snapshot.vectors

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def identity(self) -> Tuple[str, Version]:
        """(name, version) read from a single snapshot."""
        snapshot = self._current()
        return snapshot.name, snapshot.version

    def _current(self) -> _Snapshot:
        with self._lock:
            return self._snapshot

    # ══════════════════════════════════════════════════════════
    # POLICY MATCHING
    # ══════════════════════════════════════════════════════════

    def match_import(self, provider: Any) -> Optional[Policy]:
        """
        First import-side policy matching the provider, or None.

        Import side chooses first: no peer policy is applied. A
        "<<parent>>" peer name is bound to this node's parent.
        """
        kind = classify(provider)
        with self._lock:
            for policy in import_vector(self._snapshot.vectors, kind):
                if policy.match(provider, self, None):
                    return policy.bind_parent(self)
        return None

    def match_export(
        self, provider: Any, peer_policy: Optional[Policy] = None
    ) -> Optional[Policy]:
        """
        First export-side policy matching the provider, or None.

        The caller's peer policy must accept this node as the peer.
        """
        kind = classify(provider)
        with self._lock:
            for policy in export_vector(self._snapshot.vectors, kind):
                if policy.match(provider, self, peer_policy):
                    return policy
        return None

    def has_bundle_policy_equivalent(self, symbolic_name: str) -> bool:
        vectors = self.vectors
        for policy in vectors.require_bundle + vectors.provide_bundle:
            if policy.is_package_policy:
                continue
            if policy.spec.names(symbolic_name):
                return True
        return False

    def visible(
        self,
        provider: Any,
        origin: "CompositeInfo",
        peer_policy: Optional[Policy],
        provider_composite: "CompositeInfo",
    ) -> bool:
        return traversal.visible(
            self, provider, origin, peer_policy, provider_composite
        )

    # ══════════════════════════════════════════════════════════
    # UPDATE (atomic replacement)
    # ══════════════════════════════════════════════════════════

    def update(self, fresh: "CompositeInfo") -> None:
        """
        Replace name, version and all six vectors with those of `fresh`
        in one critical section.
        """
        if not isinstance(fresh, CompositeInfo):
            raise ScopeArgumentError(
                f"Expected CompositeInfo, got {type(fresh).__name__}."
            )
        if fresh.id != self._id:
            raise ScopeArgumentError(
                f"Cannot update composite '{self._id}' from "
                f"composite '{fresh.id}'."
            )

        # read fresh before taking our own lock: one lock at a time
        replacement = fresh._current()

        with self._lock:
            if self._state == NodeState.ORPHANED:
                raise CompositeOrphanedError(self._id)
            self._snapshot = replacement

    # ══════════════════════════════════════════════════════════
    # TREE STRUCTURE
    # ══════════════════════════════════════════════════════════

    def add_child(self, child: "CompositeInfo") -> None:
        if child.parent is not self:
            raise ScopeArgumentError(
                f"Composite '{child.id}' was not created with "
                f"parent '{self._id}'."
            )
        with self._children_lock:
            self._children[child.id] = child

    def remove_child(self, child: "CompositeInfo") -> None:
        with self._children_lock:
            if self._children.get(child.id) is child:
                del self._children[child.id]

    def children(self) -> Tuple["CompositeInfo", ...]:
        """Snapshot of the children in insertion order."""
        with self._children_lock:
            return tuple(self._children.values())

    def no_children(self) -> bool:
        with self._children_lock:
            return not self._children

    def orphan(self) -> None:
        """Detach from the parent. The node must have no children."""
        if self._parent is None:
            raise ScopeArgumentError("The root composite cannot be orphaned.")

        remaining = self.children()
        if remaining:
            raise OrphanWithChildrenError(
                self._id, tuple(c.id for c in remaining)
            )

        with self._lock:
            if self._state == NodeState.ORPHANED:
                return
            self._state = NodeState.ORPHANED
        self._parent.remove_child(self)

    def find_descendant_by_id(
        self, composite_id: int
    ) -> Optional["CompositeInfo"]:
        """
        Depth-first search below this node.

        Ids grow monotonically down the tree, so a child whose id
        exceeds the target cannot lead to it.
        """
        for child in self.children():
            if child.id == composite_id:
                return child
            if child.id > composite_id:
                continue
            found = child.find_descendant_by_id(composite_id)
            if found is not None:
                return found
        return None

    def __repr__(self) -> str:
        snapshot = self._current()
        return (
            f"CompositeInfo(id={self._id}, name={snapshot.name!r}, "
            f"version={snapshot.version})"
        )
