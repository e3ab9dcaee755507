#!/usr/bin/env python3
"""
Validate Flowboard's three-layer package dependencies.

Rules:
- c1 (models, enums, database session) imports no c2 or c3 package
- c2 (services) imports from c1 only, never from c3
- c3 (routes) may import c1 and c2

Shared modules under src/ outside the layers (core, api, sdk) are not checked.
"""

import ast
import sys
from pathlib import Path
from typing import List, Tuple

LAYER_PREFIXES = ("c1_", "c2_", "c3_")


def extract_imports(file_path: Path) -> List[str]:
    """Extract all project imports from a Python file."""
    try:
        tree = ast.parse(file_path.read_text(), filename=str(file_path))
    except SyntaxError as e:
        print(f"Syntax error in {file_path}: {e}")
        return []

    imports = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.name.startswith("src."):
                    imports.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.module.startswith("src."):
                imports.append(node.module)

    return imports


def get_layer(package_name: str) -> str:
    """Get layer from package name (c1_, c2_, c3_) or 'src' for shared modules."""
    for prefix in LAYER_PREFIXES:
        if package_name.startswith(prefix):
            return prefix[:2]
    return "src"


def validate_layer_dependencies(src_dir: Path = Path("src")) -> Tuple[bool, List[str]]:
    """Validate that layer dependencies follow the rules."""
    violations = []

    for py_file in sorted(src_dir.rglob("*.py")):
        package_parts = py_file.relative_to(src_dir).parts
        if len(package_parts) < 2:
            continue

        file_layer = get_layer(package_parts[0])

        for imported_module in extract_imports(py_file):
            parts = imported_module.split(".")
            imported_layer = get_layer(parts[1]) if len(parts) > 1 else "src"

            if file_layer == "c1" and imported_layer in ("c2", "c3"):
                violations.append(f"{py_file}: c1 cannot import from {imported_layer} ({imported_module})")
            elif file_layer == "c2" and imported_layer == "c3":
                violations.append(f"{py_file}: c2 cannot import from c3 ({imported_module})")

    return len(violations) == 0, violations


def main():
    """Run architecture validation."""
    success, violations = validate_layer_dependencies()

    if success:
        print("[ok] All layer dependencies are valid")
        return 0

    print(f"[broken] {len(violations)} layer dependency violation(s):")
    for violation in violations:
        print(f"  - {violation}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
