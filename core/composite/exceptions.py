"""
Composite Scope — Exceptions
===============================
Structured errors for the scope engine.

These signal programming errors or invalid declarations. An invisible
provider is never an error: visibility queries answer False.
"""

from __future__ import annotations

from typing import Any


class CompositeScopeError(Exception):
    """Base error for composite scope operations."""
    pass


class ScopeArgumentError(CompositeScopeError, ValueError):
    """A required argument is missing or inconsistent (caller bug)."""

    def __init__(self, message: str):
        super().__init__(message)


class UnknownProviderError(CompositeScopeError, TypeError):
    """Provider is not a service reference, package export or bundle."""

    def __init__(self, provider: Any):
        self.provider = provider
        super().__init__(
            f"Unsupported provider type {type(provider).__name__}. "
            f"Expected ServiceReference, ExportPackageDescription "
            f"or BundleDescription."
        )


class CompositeNotFoundError(CompositeScopeError):
    """No installed composite has the requested id."""

    def __init__(self, composite_id: int):
        self.composite_id = composite_id
        super().__init__(f"Composite '{composite_id}' is not installed.")


class CompositeOrphanedError(CompositeScopeError):
    """Operation attempted on a composite that was already orphaned."""

    def __init__(self, composite_id: int):
        self.composite_id = composite_id
        super().__init__(
            f"Composite '{composite_id}' has been orphaned. "
            f"No further structural changes allowed."
        )


class OrphanWithChildrenError(CompositeScopeError):
    """Composite still has nested composites and cannot be orphaned."""

    def __init__(self, composite_id: int, child_ids: tuple):
        self.composite_id = composite_id
        self.child_ids = child_ids
        super().__init__(
            f"Composite '{composite_id}' cannot be orphaned while it has "
            f"children: {list(child_ids)}."
        )


class PolicyDeclarationError(CompositeScopeError, ValueError):
    """A sharing-policy header could not be parsed."""

    def __init__(self, header: str, clause: str, reason: str):
        self.header = header
        self.clause = clause
        self.reason = reason
        super().__init__(
            f"Invalid {header} clause '{clause}': {reason}"
        )


class ManifestValidationError(CompositeScopeError, ValueError):
    """Composite manifest is missing headers or carries forbidden ones."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid composite manifest: {reason}")


class ScopeConfigurationError(CompositeScopeError):
    """COMPOSITE_SCOPE settings are invalid. Startup must not proceed."""

    def __init__(self, setting: str, detail: str):
        self.setting = setting
        self.detail = detail
        super().__init__(
            f"Composite scope configuration error [{setting}]: {detail}"
        )
