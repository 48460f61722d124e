"""Import-boundary checks for the ``gemini_chat`` layers.

Layers, innermost first:

1) ``base``: models, errors, logging, streaming, HTTP pool. Imports no other layer.
2) ``config``: settings. May import ``base``.
3) ``gemini``: transport and API client. May import ``base`` and ``config``.
4) ``conversation``: history engine. May import the layers above.
5) ``service``: CLI and mock server. Unrestricted.

The scan parses sources with ``ast`` and resolves relative imports, so no
module is imported while checking.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Dict, Iterable, List, Set

import pytest

PACKAGE = "gemini_chat"
ALLOWED: Dict[str, Set[str]] = {
    "base": {"base"},
    "config": {"base", "config"},
    "gemini": {"base", "config", "gemini"},
    "conversation": {"base", "config", "gemini", "conversation"},
}


def _iter_python_files(root: Path) -> Iterable[Path]:
    for path in root.rglob("*.py"):
        if "__pycache__" in path.parts or "tests" in path.parts:
            continue
        yield path


def _module_parts(path: Path, package_root: Path) -> List[str]:
    rel = path.relative_to(package_root.parent).with_suffix("")
    parts = list(rel.parts)
    if parts[-1] == "__init__":
        parts.pop()
    return parts


def _imported_layers(path: Path, package_root: Path) -> Set[str]:
    """Return the first-level subpackages of ``gemini_chat`` that ``path`` imports."""
    tree = ast.parse(path.read_text(encoding="utf-8", errors="replace"))
    module = _module_parts(path, package_root)
    is_package = path.name == "__init__.py"
    layers: Set[str] = set()
    for node in ast.walk(tree):
        targets: List[List[str]] = []
        if isinstance(node, ast.Import):
            targets = [alias.name.split(".") for alias in node.names]
        elif isinstance(node, ast.ImportFrom):
            if node.level:
                anchor = module if is_package else module[:-1]
                base = anchor[: len(anchor) - (node.level - 1)]
                targets = [base + (node.module.split(".") if node.module else [])]
            elif node.module:
                targets = [node.module.split(".")]
        for target in targets:
            if len(target) > 1 and target[0] == PACKAGE:
                layers.add(target[1])
    return layers


def test_layers_only_import_inward() -> None:
    package_root = Path(__file__).resolve().parent.parent / PACKAGE
    if not package_root.is_dir():
        pytest.skip("gemini_chat package not found next to tests/")

    offenders: List[str] = []
    for layer, allowed in ALLOWED.items():
        for py in _iter_python_files(package_root / layer):
            forbidden = {
                name
                for name in _imported_layers(py, package_root)
                if (package_root / name).is_dir() and name not in allowed
            }
            if forbidden:
                offenders.append(f"{py.relative_to(package_root)}: imports {sorted(forbidden)}")

    if offenders:
        pytest.fail("Layer boundary violations:\n" + "\n".join(offenders))
