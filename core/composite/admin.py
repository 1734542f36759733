"""
Composite Scope — Sharing-Policy Admin
=========================================
Manifest-level entry point for managing composites.

    admin = CompositePolicyAdmin(policy.manager)
    node = admin.install_composite(0, {
        "Bundle-SymbolicName": "A",
        "Bundle-Version": "1.0.0",
        "Composite-ExportPackage": "foo",
    })
    admin.update_sharing_policy(node.id, {"Composite-ExportPackage": "foo;bar"})
    admin.uninstall_composite(node.id)

Headers are validated and parsed before the tree is touched. A bad
declaration leaves the composite exactly as it was.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from core.composite.declarations import (
    BUNDLE_SYMBOLICNAME_HEADER,
    BUNDLE_VERSION_HEADER,
    parse_policy_vectors,
    validate_composite_manifest,
)
from core.composite.exceptions import ManifestValidationError
from core.composite.manager import CompositeManager
from core.composite.node import CompositeInfo
from core.composite.versions import InvalidVersionError, Version

logger = logging.getLogger("composite.admin")


def _manifest_version(headers: Mapping[str, str]) -> Optional[Version]:
    raw = headers.get(BUNDLE_VERSION_HEADER)
    if raw is None:
        return None
    try:
        return Version.parse(raw)
    except InvalidVersionError as exc:
        raise ManifestValidationError(
            f"invalid {BUNDLE_VERSION_HEADER}: {exc}"
        ) from exc


def _manifest_name(headers: Mapping[str, str]) -> Optional[str]:
    raw = headers.get(BUNDLE_SYMBOLICNAME_HEADER)
    if raw is None:
        return None
    name = str(raw).split(";")[0].strip()
    if not name:
        raise ManifestValidationError(
            f"{BUNDLE_SYMBOLICNAME_HEADER} cannot be blank."
        )
    return name


class CompositePolicyAdmin:
    """Installs, re-declares and removes composites from header maps."""

    def __init__(self, manager: CompositeManager):
        if manager is None:
            raise ValueError("manager is required.")
        self._manager = manager

    @property
    def manager(self) -> CompositeManager:
        return self._manager

    def install_composite(
        self, parent_id: int, manifest: Mapping[str, str]
    ) -> CompositeInfo:
        """
        Validate a composite manifest and install it under `parent_id`.

        Raises:
            ManifestValidationError: Manifest headers are invalid.
            PolicyDeclarationError: A sharing-policy header is malformed.
            CompositeNotFoundError: The parent is not installed.
        """
        headers = validate_composite_manifest(manifest)
        vectors = parse_policy_vectors(headers)
        node = self._manager.install(
            parent_id,
            symbolic_name=headers[BUNDLE_SYMBOLICNAME_HEADER],
            version=_manifest_version(headers),
            vectors=vectors,
        )
        logger.info(
            f"Composite '{node.name}' installed from manifest as id={node.id}."
        )
        return node

    def update_sharing_policy(
        self, composite_id: int, policy: Mapping[str, str]
    ) -> CompositeInfo:
        """
        Replace every policy vector of a composite in one step.

        Bundle-SymbolicName and Bundle-Version in `policy` change the
        composite's identity; when absent the identity is kept.
        """
        if policy is None:
            raise ManifestValidationError("the sharing policy cannot be None.")
        vectors = parse_policy_vectors(policy)
        node = self._manager.update(
            composite_id,
            symbolic_name=_manifest_name(policy),
            version=_manifest_version(policy),
            vectors=vectors,
        )
        logger.info(f"Sharing policy of composite id={composite_id} replaced.")
        return node

    def uninstall_composite(self, composite_id: int) -> CompositeInfo:
        """Orphan a composite. Its constituents must already be gone."""
        node = self._manager.orphan(composite_id)
        logger.info(f"Composite id={composite_id} uninstalled.")
        return node
