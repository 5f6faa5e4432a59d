"""
Kernel Boundary & Invariants Contract.

Tests that enforce the architectural boundaries:

1. fuel_kernel/** may NOT import fuel_services, fuel_config or
   fuel_engines. The kernel never depends upward.

2. fuel_engines/** is pure: no ORM models, no database, no kernel
   services or selectors, no fuel_services and no SQLAlchemy.

3. fuel_config/** sits below the engines and services and imports
   neither.

4. Services flush and never commit; the caller owns the transaction.

5. The kernel invariants declaration is complete and non-empty.

These tests read source code via AST; they cannot break anything.
"""

import ast
from pathlib import Path

from fuel_kernel.invariants import (
    ALL_KERNEL_INVARIANTS,
    FORBIDDEN_KERNEL_IMPORTS,
    KernelInvariant,
)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    """Return all .py files under a top-level package."""
    return sorted((PROJECT_ROOT / package).rglob("*.py"))


def _parse(filepath: Path) -> ast.AST | None:
    try:
        return ast.parse(filepath.read_text(), filename=str(filepath))
    except (SyntaxError, UnicodeDecodeError):
        return None


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = _parse(filepath)
    if tree is None:
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    rel = filepath.relative_to(PROJECT_ROOT)
                    found.append(f"  {rel}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# Test: Kernel has no upward dependencies
# ---------------------------------------------------------------------------

class TestKernelNoUpwardDependencies:
    """fuel_kernel/** must not import the packages built on top of it."""

    def test_packages_exist(self):
        assert _python_files("fuel_kernel")
        assert _python_files("fuel_engines")

    def test_kernel_does_not_import_forbidden_packages(self):
        violations = _violations("fuel_kernel", FORBIDDEN_KERNEL_IMPORTS)

        assert not violations, (
            "Kernel boundary violation: fuel_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Engines are pure
# ---------------------------------------------------------------------------

class TestEnginePurity:
    """fuel_engines/** works on DTOs and snapshots only."""

    FORBIDDEN_PREFIXES = (
        "fuel_services",
        "fuel_kernel.models",
        "fuel_kernel.db",
        "fuel_kernel.services",
        "fuel_kernel.selectors",
        "sqlalchemy",
    )

    def test_engines_do_not_touch_persistence(self):
        violations = _violations("fuel_engines", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "Engine purity violation: fuel_engines/** must not import "
            "persistence or orchestration:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Configuration layer
# ---------------------------------------------------------------------------

class TestConfigLayer:

    def test_config_does_not_import_engines_or_services(self):
        violations = _violations("fuel_config", ("fuel_engines", "fuel_services"))

        assert not violations, (
            "Configuration boundary violation:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Services never commit
# ---------------------------------------------------------------------------

class TestFlushOnly:

    def _commit_calls(self, package: str) -> list[str]:
        found: list[str] = []
        for filepath in _python_files(package):
            tree = _parse(filepath)
            if tree is None:
                continue
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Call)
                    and isinstance(node.func, ast.Attribute)
                    and node.func.attr in ("commit", "rollback")
                ):
                    rel = filepath.relative_to(PROJECT_ROOT)
                    found.append(f"  {rel}:{node.lineno} calls .{node.func.attr}()")
        return found

    def test_kernel_services_flush_only(self):
        violations = self._commit_calls("fuel_kernel/services")

        assert not violations, "\n".join(violations)

    def test_orchestration_flush_only(self):
        violations = self._commit_calls("fuel_services")

        assert not violations, "\n".join(violations)


# ---------------------------------------------------------------------------
# Test: Invariants declaration
# ---------------------------------------------------------------------------

class TestInvariantsDeclaration:

    def test_invariants_declared(self):
        assert len(ALL_KERNEL_INVARIANTS) == len(KernelInvariant)
        assert KernelInvariant.BALANCE_SUM in ALL_KERNEL_INVARIANTS
        assert KernelInvariant.SINGLE_ACTIVE_LEG in ALL_KERNEL_INVARIANTS

    def test_forbidden_imports_cover_upper_layers(self):
        assert set(FORBIDDEN_KERNEL_IMPORTS) == {"fuel_services", "fuel_config", "fuel_engines"}
