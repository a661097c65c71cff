# tests/architecture/test_architecture.py
# Architecture tests enforcing layering rules.
# - routers must not contain SQL or talk to the database directly
# - services reach storage only through repositories
# - repositories and models never import the HTTP layer

import ast
import pathlib
import re

import pytest  # type: ignore[import-not-found]

REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
PACKAGE = REPO_ROOT / "liveshare"


def _iter_py_files(root: pathlib.Path):
    for path in root.rglob("*.py"):
        if "__pycache__" in path.parts:
            continue
        yield path


def _collect_imports(py_path: pathlib.Path) -> set[str]:
    """Return the set of fully qualified modules imported by a file."""
    tree = ast.parse(py_path.read_text(encoding="utf-8"), filename=str(py_path))
    imports: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            imports.add(node.module)
    return imports


def _top_level(imports: set[str]) -> set[str]:
    return {name.split(".")[0] for name in imports}


def _file_contains_sql(py_path: pathlib.Path) -> bool:
    """Heuristic to detect raw SQL or query construction."""
    text = py_path.read_text(encoding="utf-8")
    # upper-case keywords only: Python's own `from`/`select` must not trip this
    sql_patterns = [
        r"\bSELECT\s+[\w*]",
        r"\bINSERT\s+INTO\b",
        r"\bUPDATE\s+\w+\s+SET\b",
        r"\bDELETE\s+FROM\b",
        r"\bJOIN\b",
    ]
    if any(re.search(p, text) for p in sql_patterns):
        return True
    bad_imports = {"sqlalchemy", "asyncpg", "psycopg2"}
    return bool(bad_imports & _top_level(_collect_imports(py_path)))


# ---------- Tests ----------

@pytest.mark.architecture
def test_routers_do_not_contain_sql():
    offenders = [f for f in _iter_py_files(PACKAGE / "routers") if f.name != "health.py" and _file_contains_sql(f)]
    assert not offenders, "Routers must not contain SQL; offending files:\n" + "\n".join(map(str, offenders))


@pytest.mark.architecture
def test_services_use_repositories_for_storage():
    offenders = []
    for f in _iter_py_files(PACKAGE / "services"):
        imports = _collect_imports(f)
        if _file_contains_sql(f) or any(m.startswith(("liveshare.models", "liveshare.db")) for m in imports):
            offenders.append(f)
    assert not offenders, "Services must go through repositories:\n" + "\n".join(map(str, offenders))


@pytest.mark.architecture
def test_storage_layer_does_not_import_http_layer():
    offenders = []
    for layer in ("repositories", "models"):
        for f in _iter_py_files(PACKAGE / layer):
            imports = _collect_imports(f)
            if "fastapi" in _top_level(imports) or any(m.startswith("liveshare.routers") for m in imports):
                offenders.append(f)
    assert not offenders, "Storage layer must not import the HTTP layer:\n" + "\n".join(map(str, offenders))


@pytest.mark.architecture
def test_expiry_rules_are_pure():
    imports = _collect_imports(PACKAGE / "utils" / "expiry.py")
    assert not any(m.startswith(("liveshare.repositories", "liveshare.db", "sqlalchemy")) for m in imports)
