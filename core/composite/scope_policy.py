"""
Composite Scope — Scope Policy (public query surface)
========================================================
Answers: is provider P visible to client C under the sharing
policies of the composites between them?

Every visibility query:
    1. No composites installed      → True (fast path)
    2. Missing client/provider      → ScopeArgumentError (caller bug)
    3. Client is root system bundle → True, unless a scoped service
    4. Provider bundle uninstalled  → False
    5. Provider is root system bundle → True, unless a scoped service
    6. Client composite gone        → False
    7. Same composite               → True
    8. Provider composite gone      → False
    9. Tree traversal from the client's composite

Nothing is logged on the hot path. Programming errors are logged
before they propagate.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Tuple

from core.composite.classifier import ProviderKind, classify
from core.composite.descriptions import (
    Bundle,
    BundleDescription,
    BundleRegistry,
    ServiceReference,
)
from core.composite.exceptions import ScopeArgumentError, UnknownProviderError
from core.composite.manager import CompositeManager
from core.composite.node import CompositeInfo
from core.composite.settings import ScopeSettings, load_scope_settings

logger = logging.getLogger("composite.scope")


class ScopePolicy:
    """
    Visibility façade over the composite tree.

    Usage:
        policy = ScopePolicy(registry=bundle_registry)
        a = policy.manager.install(0, "A", vectors=a_vectors)

        policy.is_service_visible(client, reference, ["org.example.X"])
        policy.is_constraint_visible(client_description, export)
        policy.same_scope(bundle_1, bundle_2)
    """

    def __init__(
        self,
        registry: BundleRegistry,
        manager: Optional[CompositeManager] = None,
        settings: Optional[ScopeSettings] = None,
    ):
        if registry is None:
            raise ScopeArgumentError("registry is required.")
        self._registry = registry
        self._settings = settings or load_scope_settings()
        self._manager = manager or CompositeManager(
            root_symbolic_name=self._settings.root_symbolic_name,
            root_version=self._settings.root_version,
        )

    @property
    def manager(self) -> CompositeManager:
        return self._manager

    @property
    def settings(self) -> ScopeSettings:
        return self._settings

    def no_scopes(self) -> bool:
        return self._manager.no_scopes()

    def get_composite_info(self, composite_id: int) -> Optional[CompositeInfo]:
        return self._manager.get_composite_info(composite_id)

    # ══════════════════════════════════════════════════════════
    # VISIBILITY
    # ══════════════════════════════════════════════════════════

    def is_service_visible(
        self,
        client: Any,
        reference: ServiceReference,
        service_classes: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        Visibility of a service reference.

        `service_classes` defaults to the reference's objectClass.
        """
        if self.no_scopes():
            return True
        client_bundle = self._require_client(client)
        if not isinstance(reference, ServiceReference):
            self._fail_provider(reference)
        if client_bundle is None:
            return False
        if service_classes is None:
            service_classes = reference.object_classes
        return self._is_visible(
            client_bundle,
            reference,
            self._lookup(reference.registering_bundle),
            tuple(service_classes),
        )

    def is_constraint_visible(self, client: Any, constraint_provider: Any) -> bool:
        """
        Visibility of an exported package or bundle description.

        `client` may be a Bundle or a BundleDescription.
        """
        if self.no_scopes():
            return True
        client_bundle = self._require_client(client)
        kind = self._require_provider(constraint_provider)
        if kind == ProviderKind.SERVICE:
            return self.is_service_visible(client, constraint_provider)
        if client_bundle is None:
            return False

        provider_bundle = self._lookup(constraint_provider.supplier)
        return self._is_visible(
            client_bundle, constraint_provider, provider_bundle, ()
        )

    def is_visible(
        self,
        client: Any,
        provider: Any,
        service_classes: Optional[Iterable[str]] = None,
    ) -> bool:
        """Dispatch on the provider kind."""
        if self.no_scopes():
            return True
        if isinstance(provider, ServiceReference):
            return self.is_service_visible(client, provider, service_classes)
        return self.is_constraint_visible(client, provider)

    def _is_visible(
        self,
        client: Bundle,
        provider: Any,
        provider_bundle: Optional[Bundle],
        service_classes: Tuple[str, ...],
    ) -> bool:
        scoped = self._settings.is_scoped(service_classes)

        if client.is_root_system_bundle and not scoped:
            return True
        if provider_bundle is None:
            # uninstalled between invocation and lookup
            return False
        if provider_bundle.is_root_system_bundle and not scoped:
            return True

        client_info = self._manager.get_composite_info(client.composite_id)
        if client_info is None:
            return False
        if client.composite_id == provider_bundle.composite_id:
            return True
        provider_info = self._manager.get_composite_info(
            provider_bundle.composite_id
        )
        if provider_info is None:
            return False

        return client_info.visible(provider, client_info, None, provider_info)

    # ══════════════════════════════════════════════════════════
    # SAME SCOPE
    # ══════════════════════════════════════════════════════════

    def same_scope(self, b1: Optional[Bundle], b2: Optional[Bundle]) -> bool:
        """
        True if both bundles live in the same composite or either is
        the root system bundle.
        """
        if self.no_scopes():
            return True
        if b1 is None or b2 is None:
            return False
        if b1.composite_id == b2.composite_id:
            return True
        return b1.is_root_system_bundle or b2.is_root_system_bundle

    def same_scope_descriptions(self, d1: Any, d2: Any) -> bool:
        if self.no_scopes():
            return True
        if d1 is None or d2 is None:
            return False
        b1 = self._lookup(d1.supplier)
        b2 = self._lookup(d2.supplier)
        return self.same_scope(b1, b2)

    # ══════════════════════════════════════════════════════════
    # RESOLVER HELPERS
    # ══════════════════════════════════════════════════════════

    def has_bundle_policy_equivalent(self, description: BundleDescription) -> bool:
        """
        True if the composite holding `description` names it in a
        require/provide bundle policy (relaxes singleton checks).
        """
        if description is None:
            raise ScopeArgumentError("description cannot be None.")
        bundle = self._lookup(description)
        if bundle is None:
            return False
        node = self._manager.get_composite_info(bundle.composite_id)
        if node is None:
            return False
        return node.has_bundle_policy_equivalent(description.symbolic_name)

    def get_scope_content(
        self, composite_id: int
    ) -> Tuple[BundleDescription, ...]:
        """Descriptions of the installed bundles inside a composite."""
        if self.no_scopes():
            return tuple()
        if self._manager.get_composite_info(composite_id) is None:
            return tuple()
        return tuple(
            bundle.describe()
            for bundle in self._registry.get_bundles_in_composite(composite_id)
        )

    # ══════════════════════════════════════════════════════════
    # ARGUMENT RESOLUTION
    # ══════════════════════════════════════════════════════════

    def _lookup(self, record: Any) -> Optional[Bundle]:
        """Installed bundle for a Bundle or BundleDescription, or None."""
        return self._registry.get_bundle(record.composite_id, record.bundle_id)

    def _require_client(self, client: Any) -> Optional[Bundle]:
        if client is None:
            logger.error("Visibility query rejected: client is None.")
            raise ScopeArgumentError("Client cannot be None.")
        if isinstance(client, Bundle):
            return client
        if isinstance(client, BundleDescription):
            return self._lookup(client)
        logger.error(
            f"Visibility query rejected: unsupported client type "
            f"{type(client).__name__}."
        )
        raise ScopeArgumentError(
            f"Client must be a Bundle or BundleDescription, "
            f"got {type(client).__name__}."
        )

    def _require_provider(self, provider: Any) -> str:
        if provider is None:
            logger.error("Visibility query rejected: provider is None.")
            raise ScopeArgumentError("Provider cannot be None.")
        try:
            return classify(provider)
        except UnknownProviderError:
            logger.error(
                f"Visibility query rejected: unsupported provider type "
                f"{type(provider).__name__}."
            )
            raise

    def _fail_provider(self, provider: Any) -> None:
        self._require_provider(provider)
        raise ScopeArgumentError(
            f"Expected ServiceReference, got {type(provider).__name__}."
        )
