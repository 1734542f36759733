"""
Composite Scope — App Configuration
======================================
Validates COMPOSITE_SCOPE when Django finishes loading.

Rules:
- Runs once via ready()
- Skips during management commands and test runs
- Invalid settings → ScopeConfigurationError prevents startup
"""

import logging
import os
import sys

from django.apps import AppConfig

logger = logging.getLogger("composite.bootstrap")

SKIP_COMMANDS = {
    "migrate",
    "makemigrations",
    "shell",
    "dbshell",
    "test",
    "collectstatic",
    "check",
}


def _is_management_command_skip():
    if len(sys.argv) >= 2:
        return sys.argv[1] in SKIP_COMMANDS
    return False


def _is_pytest_context() -> bool:
    return (
        "PYTEST_CURRENT_TEST" in os.environ
        or "pytest" in sys.modules
    )


def run_scope_self_check():
    """
    Load the scope settings and build an empty engine from them.
    Any ScopeConfigurationError propagates.
    """
    from core.composite.manager import CompositeManager
    from core.composite.settings import load_scope_settings

    settings = load_scope_settings()
    manager = CompositeManager(
        root_symbolic_name=settings.root_symbolic_name,
        root_version=settings.root_version,
    )
    logger.info(
        f"Composite scope ready: root='{manager.root.name}' "
        f"version={manager.root.version} "
        f"scoped_services={len(settings.scoped_system_services)}"
    )
    return settings


class CompositeScopeConfig(AppConfig):
    name = "core.composite"
    label = "composite"
    verbose_name = "Composite Scope"

    def ready(self):
        if _is_management_command_skip() or _is_pytest_context():
            logger.info(
                "Composite scope self-check skipped for management/test context."
            )
            return

        run_scope_self_check()
