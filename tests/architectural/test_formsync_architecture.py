"""Architectural tests for the formsync package layout.

Static, file/AST-based checks that keep the layering intact: engine logic
stays free of the web framework, route handlers delegate all SQL to the
logic layer, and error statuses come from the central error mapping.

These tests avoid executing application code and only read files under the
project root.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterable, List, Set

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE = PROJECT_ROOT / "formsync"


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Failed to parse {path}: {exc}")


def _modules(*subdirs: str) -> List[Path]:
    found: List[Path] = []
    for sub in subdirs:
        found.extend(sorted((PACKAGE / sub).glob("*.py")))
    return found


def _imported_roots(tree: ast.Module) -> Set[str]:
    roots: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            roots.update(alias.name.split(".")[0] for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            roots.add(node.module.split(".")[0])
    return roots


def _ids(paths: Iterable[Path]) -> List[str]:
    return [str(p.relative_to(PROJECT_ROOT)) for p in paths]


ENGINE_MODULES = _modules("logic", "models", "db")
ROUTE_MODULES = _modules("routes")
PUBLIC_MODULES = _modules("logic", "models", "routes", "http", "middleware")


def test_package_layout_exists():
    for sub in ("logic", "models", "routes", "http", "db"):
        assert (PACKAGE / sub).is_dir(), f"missing package directory formsync/{sub}"
    assert ENGINE_MODULES and ROUTE_MODULES


@pytest.mark.parametrize("path", ENGINE_MODULES, ids=_ids(ENGINE_MODULES))
def test_engine_modules_do_not_import_web_framework(path: Path):
    roots = _imported_roots(_parse(path))
    assert not roots & {"fastapi", "starlette"}, f"{path.name} imports the web framework"


@pytest.mark.parametrize("path", ROUTE_MODULES, ids=_ids(ROUTE_MODULES))
def test_routes_do_not_touch_sql_directly(path: Path):
    tree = _parse(path)
    assert "sqlalchemy" not in _imported_roots(tree), f"{path.name} imports sqlalchemy"
    text = path.read_text(encoding="utf-8")
    assert not re.search(r"\b(SELECT|INSERT|UPDATE|DELETE\s+FROM|CREATE\s+TABLE|DROP\s+TABLE)\b", text), (
        f"{path.name} contains inline SQL"
    )


@pytest.mark.parametrize("path", ROUTE_MODULES, ids=_ids(ROUTE_MODULES))
def test_routes_do_not_hardcode_engine_error_codes(path: Path):
    text = path.read_text(encoding="utf-8")
    assert "FORMSYNC_" not in text, f"{path.name} hardcodes an error code; use formsync.http.error_mapping"


@pytest.mark.parametrize("path", PUBLIC_MODULES, ids=_ids(PUBLIC_MODULES))
def test_modules_declare_public_names(path: Path):
    tree = _parse(path)
    exported = [
        node
        for node in tree.body
        if isinstance(node, ast.Assign)
        and any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets)
    ]
    assert exported, f"{path.name} does not declare __all__"


def test_every_engine_error_has_a_mapping():
    errors = _parse(PACKAGE / "logic" / "errors.py")
    declared = {
        node.name
        for node in errors.body
        if isinstance(node, ast.ClassDef) and node.name != "FormSyncError"
    }
    mapping_text = (PACKAGE / "http" / "error_mapping.py").read_text(encoding="utf-8")
    missing = sorted(name for name in declared if not re.search(rf"\b{name}\s*:", mapping_text))
    assert not missing, f"error classes without a problem+json mapping: {missing}"


def test_app_is_not_instantiated_at_import():
    tree = _parse(PACKAGE / "main.py")
    for node in tree.body:
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
            func = node.value.func
            name = getattr(func, "id", None) or getattr(func, "attr", None)
            assert name not in {"FastAPI", "create_app"}, "main.py builds an app at import time"
