"""
Import-boundary enforcement.

1. Kernel independence  -- payroll_kernel/** may not import engines, config
                           or services.
2. Domain purity        -- payroll_kernel/domain/** may not import the ORM
                           or any kernel persistence layer.
3. Engine purity        -- payroll_engines/** may only import the kernel
                           domain and logging, never the DB or services.
4. Config centralisation -- outside payroll_config, only the package itself
                           is imported, never loader/schema directly.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.level == 0:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == prefix or module.startswith(f"{prefix}.") for prefix in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath.relative_to(REPO_ROOT)}:{lineno} imports '{module}'")
    return found


class TestKernelIndependence:

    FORBIDDEN_PREFIXES = ("payroll_engines", "payroll_config", "payroll_services")

    def test_kernel_has_no_upward_imports(self):
        violations = _violations("payroll_kernel", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "payroll_kernel/** must not import engines, config or services:\n"
            + "\n".join(violations)
        )


class TestDomainPurity:

    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "psycopg2",
        "payroll_kernel.db",
        "payroll_kernel.models",
        "payroll_kernel.selectors",
        "payroll_kernel.services",
    )

    def test_domain_is_pure(self):
        violations = _violations("payroll_kernel/domain", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "payroll_kernel/domain/** must stay free of persistence:\n"
            + "\n".join(violations)
        )


class TestEnginePurity:

    ALLOWED_KERNEL_PREFIXES = ("payroll_kernel.domain", "payroll_kernel.logging_config")

    def test_engines_import_only_domain_and_logging(self):
        violations = []
        for filepath in _python_files("payroll_engines"):
            for lineno, module in _extract_imports(filepath):
                if module.startswith("payroll_") and not _matches_any(
                    module, ("payroll_engines",) + self.ALLOWED_KERNEL_PREFIXES
                ):
                    violations.append(
                        f"  {filepath.relative_to(REPO_ROOT)}:{lineno} imports '{module}'"
                    )

        assert not violations, "Engine purity violation:\n" + "\n".join(violations)

    def test_engines_do_not_touch_the_database(self):
        violations = _violations("payroll_engines", ("sqlalchemy", "psycopg2", "sqlite3"))

        assert not violations, "\n".join(violations)


class TestConfigCentralisation:

    INTERNAL_MODULES = ("payroll_config.loader", "payroll_config.schema")

    def test_only_public_entrypoint_used(self):
        violations = []
        for package in ("payroll_kernel", "payroll_engines", "payroll_services"):
            violations.extend(_violations(package, self.INTERNAL_MODULES))

        assert not violations, (
            "Import configuration through payroll_config only:\n" + "\n".join(violations)
        )
