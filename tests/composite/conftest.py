"""
Shared fixtures for core.composite tests.

Tree convention used throughout:
    R (0) ── A (1) ── B (2)
      └──── S (3)
All composites start with empty policies.
"""

import pytest

from core.composite.declarations import parse_policy_vectors
from core.composite.descriptions import (
    Bundle,
    ExportPackageDescription,
    InMemoryBundleRegistry,
    ServiceReference,
)
from core.composite.scope_policy import ScopePolicy
from core.composite.settings import ScopeSettings
from core.composite.versions import Version

ROOT_SYSTEM_BUNDLE = Bundle(0, 0, "system.bundle")


@pytest.fixture
def registry():
    return InMemoryBundleRegistry([ROOT_SYSTEM_BUNDLE])


@pytest.fixture
def scope(registry):
    return ScopePolicy(registry=registry, settings=ScopeSettings())


@pytest.fixture
def tree(scope):
    manager = scope.manager
    a = manager.install(0, "A", Version(1))
    b = manager.install(a.id, "B", Version(1))
    s = manager.install(0, "S", Version(1))
    return {"R": manager.root, "A": a, "B": b, "S": s}


@pytest.fixture
def declare(scope):
    """Replace a composite's policies from header text."""

    def _declare(node, name=None, version=None, **headers):
        policy = {
            f"Composite-{key}": value for key, value in headers.items()
        }
        return scope.manager.update(
            node.id,
            symbolic_name=name,
            version=Version.parse(version) if version else None,
            vectors=parse_policy_vectors(policy),
        )

    return _declare


@pytest.fixture
def make_bundle(registry):
    counter = {"next": 100}

    def _make(node, symbolic_name="", version="1.0.0"):
        counter["next"] += 1
        return registry.install(
            Bundle(
                counter["next"],
                node.id,
                symbolic_name or f"bundle.{counter['next']}",
                Version.parse(version),
            )
        )

    return _make


@pytest.fixture
def export_of():
    def _export(bundle, package, version="1.0.0", **attributes):
        return ExportPackageDescription(
            package, Version.parse(version), bundle.describe(), attributes
        )

    return _export


@pytest.fixture
def service_of():
    def _service(bundle, *classes, **properties):
        properties["objectClass"] = list(classes)
        return ServiceReference(bundle, properties)

    return _service
