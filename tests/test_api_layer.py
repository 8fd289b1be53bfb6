"""Tests for API layer guardrails and contracts."""

import ast
from pathlib import Path

API_DIR = Path(__file__).resolve().parents[1] / "src" / "certledger" / "api"

FORBIDDEN_NAMES = {"Column", "Integer", "String", "Base", "select", "create_engine"}


def _api_files():
    return sorted(p for p in API_DIR.glob("*.py") if p.name != "__init__.py")


def _type_checking_imports(tree):
    """Import nodes nested under `if TYPE_CHECKING:` blocks."""
    guarded = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.If) and getattr(node.test, "id", None) == "TYPE_CHECKING":
            for child in ast.walk(node):
                if isinstance(child, (ast.Import, ast.ImportFrom)):
                    guarded.add(id(child))
    return guarded


def _annotation_name_ids(tree):
    """ids of Name nodes that sit inside function argument or return annotations."""
    ids = set()
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            annotations = [a.annotation for a in node.args.args + node.args.kwonlyargs if a.annotation]
            if node.returns is not None:
                annotations.append(node.returns)
            for annotation in annotations:
                ids.update(id(n) for n in ast.walk(annotation) if isinstance(n, ast.Name))
    return ids


def test_api_files_exist():
    names = {p.name for p in _api_files()}
    assert {
        "factories_api.py",
        "organizations_api.py",
        "certificates_api.py",
        "standards_api.py",
        "assertions_api.py",
        "models.py",
    } <= names


def test_api_layer_has_no_sqlalchemy_imports():
    """Test that API layer files don't import SQLAlchemy directly.

    Note: TYPE_CHECKING imports are allowed (e.g., `if TYPE_CHECKING: from ..database.schema import Organization`).
    `from sqlalchemy.orm import Session` is allowed for type hints only, and
    schema constants (UPPER_CASE) may be imported at runtime.
    """
    violations = []
    for api_file in _api_files():
        source = api_file.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(api_file))
        guarded = _type_checking_imports(tree)
        session_imported = False

        for node in ast.walk(tree):
            if id(node) in guarded:
                continue
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name.split(".")[0] == "sqlalchemy":
                        violations.append(f"{api_file.name}: import {alias.name}")
            elif isinstance(node, ast.ImportFrom):
                module = node.module or ""
                names = [alias.name for alias in node.names]
                if module.split(".")[0] == "sqlalchemy":
                    if module == "sqlalchemy.orm" and names == ["Session"]:
                        session_imported = True
                        continue
                    violations.append(f"{api_file.name}:{node.lineno} from {module} import {names}")
                if module.endswith("database.schema"):
                    models = [n for n in names if not n.isupper()]
                    if models:
                        violations.append(
                            f"{api_file.name}:{node.lineno} imports ORM models {models} outside TYPE_CHECKING"
                        )
                for name in names:
                    if name in FORBIDDEN_NAMES:
                        violations.append(f"{api_file.name}:{node.lineno} imports '{name}'")

        if session_imported:
            annotation_ids = _annotation_name_ids(tree)
            for node in ast.walk(tree):
                if isinstance(node, ast.Name) and node.id == "Session" and id(node) not in annotation_ids:
                    violations.append(f"{api_file.name}:{node.lineno} uses Session outside type hints")

    assert not violations, "API layer has SQLAlchemy violations:\n" + "\n".join(violations)


def test_api_layer_makes_no_direct_session_calls():
    """Test that queries go through the store, never session.query/execute."""
    for api_file in _api_files():
        tree = ast.parse(api_file.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.Attribute) and node.attr in {"query", "execute", "add", "commit"}:
                value = node.value
                assert not (isinstance(value, ast.Name) and value.id == "session"), (
                    f"{api_file.name}:{node.lineno} calls session.{node.attr} directly"
                )
