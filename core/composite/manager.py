"""
Composite Scope — Structural Manager
=======================================
Builds and mutates the composite tree.

Rules:
- The root composite (id 0) exists for the manager's lifetime
- Ids are allocated monotonically; a child's id exceeds its parent's
- Install inserts a node under its declared parent
- Update swaps the node's identity + vectors atomically
- Orphan detaches a childless node; it is terminal

The manager owns no bundles. Uninstalling the constituents of a
composite is the caller's job before orphan().
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from core.composite.descriptions import ROOT_COMPOSITE_ID
from core.composite.exceptions import (
    CompositeNotFoundError,
    ScopeArgumentError,
)
from core.composite.node import CompositeInfo
from core.composite.policies import PolicyVectors
from core.composite.versions import EMPTY_VERSION, Version

logger = logging.getLogger("composite.structure")

ROOT_SYMBOLIC_NAME = "system.bundle"


class CompositeManager:
    """
    Owner of the composite tree.

    Thread-safe. Structural changes are serialised by the manager lock;
    queries never take it.

    Usage:
        manager = CompositeManager()
        a = manager.install(0, "A", Version(1), vectors=a_vectors)
        manager.update(a.id, "A", Version(2), vectors=new_vectors)
        manager.orphan(a.id)
    """

    def __init__(
        self,
        root_symbolic_name: str = ROOT_SYMBOLIC_NAME,
        root_version: Version = EMPTY_VERSION,
    ):
        self._root = CompositeInfo(
            ROOT_COMPOSITE_ID, root_symbolic_name, root_version
        )
        self._next_id = ROOT_COMPOSITE_ID + 1
        self._lock = Lock()

    @property
    def root(self) -> CompositeInfo:
        return self._root

    def no_scopes(self) -> bool:
        return self._root.no_children()

    # ══════════════════════════════════════════════════════════
    # LOOKUP
    # ══════════════════════════════════════════════════════════

    def get_composite_info(self, composite_id: int) -> Optional[CompositeInfo]:
        if composite_id == ROOT_COMPOSITE_ID:
            return self._root
        return self._root.find_descendant_by_id(composite_id)

    def require_composite_info(self, composite_id: int) -> CompositeInfo:
        node = self.get_composite_info(composite_id)
        if node is None:
            raise CompositeNotFoundError(composite_id)
        return node

    # ══════════════════════════════════════════════════════════
    # MUTATION
    # ══════════════════════════════════════════════════════════

    def install(
        self,
        parent_id: int,
        symbolic_name: str = "",
        version: Optional[Version] = None,
        vectors: Optional[PolicyVectors] = None,
    ) -> CompositeInfo:
        """
        Create a composite under `parent_id` and link it into the tree.

        Raises:
            CompositeNotFoundError: If the parent is not installed.
        """
        with self._lock:
            parent = self.require_composite_info(parent_id)
            node = CompositeInfo(
                self._next_id,
                symbolic_name,
                version,
                parent=parent,
                vectors=vectors,
            )
            self._next_id += 1
            parent.add_child(node)

        logger.info(
            f"Composite installed: id={node.id} name='{node.name}' "
            f"version={node.version} parent={parent_id}"
        )
        return node

    def update(
        self,
        composite_id: int,
        symbolic_name: Optional[str] = None,
        version: Optional[Version] = None,
        vectors: Optional[PolicyVectors] = None,
    ) -> CompositeInfo:
        """
        Replace a composite's identity and policy vectors.

        A None name/version keeps the current value; None vectors
        clears every policy.
        """
        if composite_id == ROOT_COMPOSITE_ID:
            raise ScopeArgumentError("The root composite cannot be updated.")

        with self._lock:
            node = self.require_composite_info(composite_id)
            fresh = CompositeInfo(
                node.id,
                symbolic_name if symbolic_name is not None else node.name,
                version if version is not None else node.version,
                parent=node.parent,
                vectors=vectors,
            )
            node.update(fresh)

        logger.info(
            f"Composite updated: id={composite_id} name='{fresh.name}' "
            f"version={fresh.version}"
        )
        return node

    def orphan(self, composite_id: int) -> CompositeInfo:
        """
        Detach a composite from the tree.

        Raises:
            ScopeArgumentError: For the root composite.
            CompositeNotFoundError: If not installed.
            OrphanWithChildrenError: If nested composites remain.
        """
        if composite_id == ROOT_COMPOSITE_ID:
            raise ScopeArgumentError("The root composite cannot be orphaned.")

        with self._lock:
            node = self.require_composite_info(composite_id)
            node.orphan()

        logger.info(f"Composite orphaned: id={composite_id}")
        return node

    def composite_count(self) -> int:
        """Installed composites, root included."""
        count = 0
        pending = [self._root]
        while pending:
            node = pending.pop()
            count += 1
            pending.extend(node.children())
        return count
