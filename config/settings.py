"""
Composite Scope – Django Settings (Infrastructure Only)
=======================================================
Django serves as the configuration container for the scope engine.
The engine keeps no database state; composites live in memory.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "COMPOSITE_SCOPE_SECRET_KEY", "composite-scope-dev-key"
)

DEBUG = os.environ.get("COMPOSITE_SCOPE_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "core.composite.apps.CompositeScopeConfig",
]

# ── Database ──────────────────────────────────────────────────
# No models. Composite trees are in-memory only.
DATABASES = {}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

# ── Composite Scope ───────────────────────────────────────────
# Root system bundle registrations of these classes are subject to
# the sharing policies like any other service.
COMPOSITE_SCOPE = {
    "SCOPED_SYSTEM_SERVICES": [
        "org.osgi.service.url.URLStreamHandlerService",
        "java.net.ContentHandler",
        "org.osgi.framework.hooks.service.EventHook",
        "org.osgi.framework.hooks.service.FindHook",
        "org.osgi.framework.hooks.service.ListenerHook",
    ],
    "ROOT_SYMBOLIC_NAME": "system.bundle",
    "ROOT_VERSION": "0.0.0",
}

# ── Logging ───────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("COMPOSITE_SCOPE_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "composite": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": True,
        },
    },
}
