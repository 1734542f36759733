"""
Composite Scope — Sharing-Policy Declarations
================================================
Turns the six policy headers of a composite manifest into PolicyVectors.

    Composite-ImportPackage: foo;version="[1.0,2.0)";peer-symbolic-name=A
    Composite-ExportPackage: foo;bar;version=1.0
    Composite-RequireBundle: org.example.*;bundle-version="[1,2)"
    Composite-ProvideBundle: org.example.api
    Composite-ImportService: (objectClass=org.example.X);peer-symbolic-name=A
    Composite-ExportService: (objectClass=org.example.X)

Clauses are comma separated; parameters are ';' separated and written
key=value or key:=value. Quotes and parentheses protect separators.

Peer constraints restrict which composite an import may be satisfied
from, so they are only legal on the import headers. An export header
carrying peer-symbolic-name or peer-version-range is rejected.
"<<parent>>" as peer-symbolic-name names the parent composite. It is
only legal on class-space import headers (ImportPackage, RequireBundle).
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from core.composite.exceptions import (
    ManifestValidationError,
    PolicyDeclarationError,
)
from core.composite.filters import Filter, InvalidFilterError
from core.composite.policies import ClassSpacePolicy, PolicyVectors, ServicePolicy
from core.composite.specs import (
    PARENT_PEER,
    BundleSpec,
    ImportPackageSpec,
    PeerConstraint,
)
from core.composite.versions import InvalidVersionError, VersionRange

# ── Policy headers ────────────────────────────────────────────
IMPORT_PACKAGE_POLICY = "Composite-ImportPackage"
EXPORT_PACKAGE_POLICY = "Composite-ExportPackage"
REQUIRE_BUNDLE_POLICY = "Composite-RequireBundle"
PROVIDE_BUNDLE_POLICY = "Composite-ProvideBundle"
IMPORT_SERVICE_POLICY = "Composite-ImportService"
EXPORT_SERVICE_POLICY = "Composite-ExportService"

POLICY_HEADERS = (
    IMPORT_PACKAGE_POLICY,
    EXPORT_PACKAGE_POLICY,
    REQUIRE_BUNDLE_POLICY,
    PROVIDE_BUNDLE_POLICY,
    IMPORT_SERVICE_POLICY,
    EXPORT_SERVICE_POLICY,
)

# ── Parameters ────────────────────────────────────────────────
VERSION = "version"
BUNDLE_SYMBOLIC_NAME = "bundle-symbolic-name"
BUNDLE_VERSION = "bundle-version"
PEER_SYMBOLIC_NAME = "peer-symbolic-name"
PEER_VERSION_RANGE = "peer-version-range"

# ── Manifest headers ──────────────────────────────────────────
BUNDLE_SYMBOLICNAME_HEADER = "Bundle-SymbolicName"
BUNDLE_VERSION_HEADER = "Bundle-Version"
BUNDLE_MANIFESTVERSION_HEADER = "Bundle-ManifestVersion"

INVALID_COMPOSITE_HEADERS = (
    "DynamicImport-Package",
    "Import-Package",
    "Export-Package",
    "Require-Bundle",
    "Fragment-Host",
    "Bundle-NativeCode",
    "Bundle-ClassPath",
    "Bundle-Activator",
    "Bundle-Localization",
    "Bundle-ActivationPolicy",
)

_PARENT_PEER_HEADERS = frozenset({IMPORT_PACKAGE_POLICY, REQUIRE_BUNDLE_POLICY})
_PEER_HEADERS = _PARENT_PEER_HEADERS | {IMPORT_SERVICE_POLICY}


# ══════════════════════════════════════════════════════════════
# TOKENIZING
# ══════════════════════════════════════════════════════════════

def _split_top_level(text: str, separator: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    quoted = False
    for char in text:
        if char == '"':
            quoted = not quoted
        elif not quoted and char == "(":
            depth += 1
        elif not quoted and char == ")":
            depth -= 1
        elif not quoted and depth == 0 and char == separator:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def split_clauses(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return _split_top_level(value, ",")


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _parse_clause(header: str, clause: str) -> Tuple[List[str], Dict[str, str]]:
    """Split a clause into its leading paths and its parameters."""
    paths: List[str] = []
    params: Dict[str, str] = {}
    for part in _split_top_level(clause, ";"):
        if part.startswith("("):
            if params:
                raise PolicyDeclarationError(
                    header, clause, "filter must come before parameters"
                )
            paths.append(part)
            continue

        if "=" not in part:
            if params:
                raise PolicyDeclarationError(
                    header, clause, f"'{part}' must come before parameters"
                )
            paths.append(part)
            continue

        key, _, value = part.partition("=")
        key = key.strip().rstrip(":").strip()
        if not key:
            raise PolicyDeclarationError(header, clause, "empty parameter name")
        if key in params:
            raise PolicyDeclarationError(
                header, clause, f"duplicate parameter '{key}'"
            )
        params[key] = _unquote(value)

    if not paths:
        raise PolicyDeclarationError(header, clause, "missing name or filter")
    return paths, params


def _range(header: str, clause: str, value: Optional[str]) -> Optional[VersionRange]:
    if value is None:
        return None
    try:
        return VersionRange.parse(value)
    except InvalidVersionError as exc:
        raise PolicyDeclarationError(header, clause, str(exc)) from exc


def _peer(header: str, clause: str, params: Dict[str, str]) -> PeerConstraint:
    name = params.pop(PEER_SYMBOLIC_NAME, None)
    version_range = _range(header, clause, params.pop(PEER_VERSION_RANGE, None))
    if (name or version_range) and header not in _PEER_HEADERS:
        raise PolicyDeclarationError(
            header, clause,
            f"peer constraints are only allowed on {sorted(_PEER_HEADERS)}",
        )
    if name == PARENT_PEER and header not in _PARENT_PEER_HEADERS:
        raise PolicyDeclarationError(
            header, clause,
            f"'{PARENT_PEER}' is only allowed on "
            f"{sorted(_PARENT_PEER_HEADERS)}",
        )
    return PeerConstraint(symbolic_name=name or None, version_range=version_range)


def _reject_leftovers(header: str, clause: str, params: Dict[str, str]) -> None:
    if params:
        raise PolicyDeclarationError(
            header, clause, f"unsupported parameters {sorted(params)}"
        )


# ══════════════════════════════════════════════════════════════
# CLAUSE PARSERS
# ══════════════════════════════════════════════════════════════

def parse_package_policies(header: str, value: Optional[str]) -> Tuple[ClassSpacePolicy, ...]:
    policies: List[ClassSpacePolicy] = []
    for clause in split_clauses(value):
        names, params = _parse_clause(header, clause)
        peer = _peer(header, clause, params)
        version_range = _range(header, clause, params.pop(VERSION, None))
        bundle_name = params.pop(BUNDLE_SYMBOLIC_NAME, None)
        bundle_range = _range(header, clause, params.pop(BUNDLE_VERSION, None))
        # remaining key=value pairs are matching attributes
        for name in names:
            if name.startswith("("):
                raise PolicyDeclarationError(
                    header, clause, "filters are not allowed for packages"
                )
            policies.append(ClassSpacePolicy(
                spec=ImportPackageSpec(
                    name=name,
                    version_range=version_range,
                    bundle_symbolic_name=bundle_name,
                    bundle_version_range=bundle_range,
                    attributes=params,
                ),
                peer=peer,
            ))
    return tuple(policies)


def parse_bundle_policies(header: str, value: Optional[str]) -> Tuple[ClassSpacePolicy, ...]:
    wildcards = header != PROVIDE_BUNDLE_POLICY
    policies: List[ClassSpacePolicy] = []
    for clause in split_clauses(value):
        names, params = _parse_clause(header, clause)
        peer = _peer(header, clause, params)
        raw_range = params.pop(BUNDLE_VERSION, None)
        if raw_range is None:
            raw_range = params.pop(VERSION, None)
        version_range = _range(header, clause, raw_range)
        _reject_leftovers(header, clause, params)
        for name in names:
            policies.append(ClassSpacePolicy(
                spec=BundleSpec(
                    symbolic_name=name,
                    version_range=version_range,
                    wildcards=wildcards,
                ),
                peer=peer,
            ))
    return tuple(policies)


def parse_service_policies(header: str, value: Optional[str]) -> Tuple[ServicePolicy, ...]:
    policies: List[ServicePolicy] = []
    for clause in split_clauses(value):
        filters, params = _parse_clause(header, clause)
        peer = _peer(header, clause, params)
        _reject_leftovers(header, clause, params)
        for text in filters:
            try:
                parsed = Filter.parse(text)
            except InvalidFilterError as exc:
                raise PolicyDeclarationError(header, clause, str(exc)) from exc
            policies.append(ServicePolicy(filter=parsed, peer=peer))
    return tuple(policies)


def parse_policy_vectors(headers: Optional[Mapping[str, str]]) -> PolicyVectors:
    """Build all six vectors from a header map. Other headers are ignored."""
    headers = headers or {}
    return PolicyVectors(
        import_package=parse_package_policies(
            IMPORT_PACKAGE_POLICY, headers.get(IMPORT_PACKAGE_POLICY)
        ),
        export_package=parse_package_policies(
            EXPORT_PACKAGE_POLICY, headers.get(EXPORT_PACKAGE_POLICY)
        ),
        require_bundle=parse_bundle_policies(
            REQUIRE_BUNDLE_POLICY, headers.get(REQUIRE_BUNDLE_POLICY)
        ),
        provide_bundle=parse_bundle_policies(
            PROVIDE_BUNDLE_POLICY, headers.get(PROVIDE_BUNDLE_POLICY)
        ),
        import_service=parse_service_policies(
            IMPORT_SERVICE_POLICY, headers.get(IMPORT_SERVICE_POLICY)
        ),
        export_service=parse_service_policies(
            EXPORT_SERVICE_POLICY, headers.get(EXPORT_SERVICE_POLICY)
        ),
    )


# ══════════════════════════════════════════════════════════════
# MANIFEST VALIDATION
# ══════════════════════════════════════════════════════════════

def validate_composite_manifest(manifest: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Check a composite manifest and return a normalised copy.

    Raises:
        ManifestValidationError: Missing symbolic name, ordinary bundle
            headers present, or a manifest version other than 2.
    """
    if manifest is None:
        raise ManifestValidationError("the composite manifest cannot be None.")

    result = dict(manifest)
    symbolic_name = result.get(BUNDLE_SYMBOLICNAME_HEADER)
    if not symbolic_name or not str(symbolic_name).strip():
        raise ManifestValidationError(
            f"the manifest must contain a {BUNDLE_SYMBOLICNAME_HEADER} header."
        )
    # drop directives such as ";singleton:=true"
    result[BUNDLE_SYMBOLICNAME_HEADER] = str(symbolic_name).split(";")[0].strip()

    for header in INVALID_COMPOSITE_HEADERS:
        if result.get(header) is not None:
            raise ManifestValidationError(
                f"the manifest must not contain the header {header}."
            )

    manifest_version = result.get(BUNDLE_MANIFESTVERSION_HEADER)
    if manifest_version is None:
        result[BUNDLE_MANIFESTVERSION_HEADER] = "2"
    elif str(manifest_version).strip() != "2":
        raise ManifestValidationError(
            f"invalid {BUNDLE_MANIFESTVERSION_HEADER}: {manifest_version}."
        )
    return result
