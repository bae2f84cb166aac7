"""Structural tests for route code.

Verifies that routes follow the service/route separation rule:
- Routes may not contain domain logic or raw DB access
- Routes may only import from allowed modules
"""

import ast
from pathlib import Path

import pytest

ROUTES_DIR = Path(__file__).parent.parent / "zenvi" / "api" / "routes"

ALLOWED_MODULES = [
    "fastapi",
    "typing",
    "uuid",
    "sqlalchemy.orm",  # Only for Session type annotation
    "zenvi.api.deps",
    "zenvi.auth.middleware",
    "zenvi.responses",
    "zenvi.errors",
    "zenvi.schemas",
    "zenvi.services",
    "zenvi.storage.client",  # Only for the storage dependency annotation
]

FORBIDDEN_CALLS = {"execute", "scalar", "scalars", "query", "add", "commit", "flush"}


def _route_files() -> list[Path]:
    return sorted(f for f in ROUTES_DIR.glob("*.py") if f.name != "__init__.py")


def _imported_modules(tree: ast.AST) -> list[str]:
    modules = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            modules.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            modules.append(node.module)
    return modules


@pytest.fixture(params=_route_files(), ids=lambda p: p.name)
def route_tree(request) -> tuple[Path, ast.AST]:
    path = request.param
    return path, ast.parse(path.read_text())


def test_route_files_found():
    assert len(_route_files()) >= 6


class TestRouteStructure:
    def test_only_allowed_imports(self, route_tree):
        path, tree = route_tree
        for module in _imported_modules(tree):
            assert any(
                module == allowed or module.startswith(allowed + ".")
                for allowed in ALLOWED_MODULES
            ), f"{path.name} imports {module}"

    def test_no_raw_db_access(self, route_tree):
        path, tree = route_tree
        for node in ast.walk(tree):
            if (
                isinstance(node, ast.Call)
                and isinstance(node.func, ast.Attribute)
                and isinstance(node.func.value, ast.Name)
                and node.func.value.id == "db"
            ):
                assert node.func.attr not in FORBIDDEN_CALLS, (
                    f"{path.name}:{node.lineno} calls db.{node.func.attr}"
                )
