"""
Composite Scope — Settings
=============================
Engine configuration comes from the Django settings module:

    COMPOSITE_SCOPE = {
        "SCOPED_SYSTEM_SERVICES": [...],
        "ROOT_SYMBOLIC_NAME": "system.bundle",
        "ROOT_VERSION": "0.0.0",
    }

Missing keys fall back to the defaults below. Outside a configured
Django project the defaults are used as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional

from core.composite.exceptions import ScopeConfigurationError
from core.composite.versions import EMPTY_VERSION, InvalidVersionError, Version

SETTINGS_NAME = "COMPOSITE_SCOPE"

# The root system bundle's registrations of these classes are not
# visible everywhere; they go through normal traversal.
DEFAULT_SCOPED_SYSTEM_SERVICES = frozenset({
    "org.osgi.service.url.URLStreamHandlerService",
    "java.net.ContentHandler",
    "org.osgi.framework.hooks.service.EventHook",
    "org.osgi.framework.hooks.service.FindHook",
    "org.osgi.framework.hooks.service.ListenerHook",
})

DEFAULT_ROOT_SYMBOLIC_NAME = "system.bundle"


@dataclass(frozen=True)
class ScopeSettings:
    scoped_system_services: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_SCOPED_SYSTEM_SERVICES
    )
    root_symbolic_name: str = DEFAULT_ROOT_SYMBOLIC_NAME
    root_version: Version = EMPTY_VERSION

    def __post_init__(self):
        services = self.scoped_system_services
        if isinstance(services, str) or not hasattr(services, "__iter__"):
            raise ScopeConfigurationError(
                "SCOPED_SYSTEM_SERVICES",
                "must be a collection of class names.",
            )
        normalized = frozenset(services)
        for name in normalized:
            if not isinstance(name, str) or not name.strip():
                raise ScopeConfigurationError(
                    "SCOPED_SYSTEM_SERVICES",
                    f"class name {name!r} must be a non-empty string.",
                )
        object.__setattr__(self, "scoped_system_services", normalized)

        if not self.root_symbolic_name or not isinstance(
            self.root_symbolic_name, str
        ):
            raise ScopeConfigurationError(
                "ROOT_SYMBOLIC_NAME", "must be a non-empty string."
            )
        if not isinstance(self.root_version, Version):
            raise ScopeConfigurationError(
                "ROOT_VERSION", "must be a Version."
            )

    def is_scoped(self, service_classes) -> bool:
        """True if any of the given class names is a scoped system service."""
        if not service_classes:
            return False
        if isinstance(service_classes, str):
            service_classes = (service_classes,)
        return any(c in self.scoped_system_services for c in service_classes)

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "ScopeSettings":
        values = dict(values or {})
        unknown = set(values) - {
            "SCOPED_SYSTEM_SERVICES", "ROOT_SYMBOLIC_NAME", "ROOT_VERSION",
        }
        if unknown:
            raise ScopeConfigurationError(
                SETTINGS_NAME, f"unknown keys {sorted(unknown)}."
            )

        try:
            root_version = Version.parse(values.get("ROOT_VERSION"))
        except InvalidVersionError as exc:
            raise ScopeConfigurationError("ROOT_VERSION", str(exc)) from exc

        return cls(
            scoped_system_services=values.get(
                "SCOPED_SYSTEM_SERVICES", DEFAULT_SCOPED_SYSTEM_SERVICES
            ),
            root_symbolic_name=values.get(
                "ROOT_SYMBOLIC_NAME", DEFAULT_ROOT_SYMBOLIC_NAME
            ),
            root_version=root_version,
        )


def load_scope_settings() -> ScopeSettings:
    """Read COMPOSITE_SCOPE from django.conf.settings (defaults if unset)."""
    from django.conf import settings

    if not settings.configured:
        return ScopeSettings()
    return ScopeSettings.from_mapping(getattr(settings, SETTINGS_NAME, None))
