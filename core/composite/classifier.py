"""
Composite Scope — Provider Classifier
========================================
Routes a provider to the policy vector that governs it.

    ServiceReference          → import_service  / export_service
    ExportPackageDescription  → import_package  / export_package
    BundleDescription         → require_bundle  / provide_bundle
"""

from __future__ import annotations

from typing import Any, Tuple

from core.composite.descriptions import (
    BundleDescription,
    ExportPackageDescription,
    ServiceReference,
)
from core.composite.exceptions import UnknownProviderError
from core.composite.policies import PolicyVectors


class ProviderKind:
    SERVICE = "SERVICE"
    PACKAGE = "PACKAGE"
    BUNDLE = "BUNDLE"

    ALL = frozenset({"SERVICE", "PACKAGE", "BUNDLE"})


def classify(provider: Any) -> str:
    if isinstance(provider, ServiceReference):
        return ProviderKind.SERVICE
    if isinstance(provider, ExportPackageDescription):
        return ProviderKind.PACKAGE
    if isinstance(provider, BundleDescription):
        return ProviderKind.BUNDLE
    raise UnknownProviderError(provider)


def import_vector(vectors: PolicyVectors, kind: str) -> Tuple:
    if kind == ProviderKind.SERVICE:
        return vectors.import_service
    if kind == ProviderKind.PACKAGE:
        return vectors.import_package
    return vectors.require_bundle


def export_vector(vectors: PolicyVectors, kind: str) -> Tuple:
    if kind == ProviderKind.SERVICE:
        return vectors.export_service
    if kind == ProviderKind.PACKAGE:
        return vectors.export_package
    return vectors.provide_bundle
