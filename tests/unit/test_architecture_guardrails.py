from __future__ import annotations

import ast
import sys
from dataclasses import dataclass
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

ROOT = Path(__file__).resolve().parents[2]
SRC_ROOT = ROOT / "src" / "tavern"
LAYERS = ("domain", "application", "infrastructure", "presentation")

# layer -> layers it must never import at runtime
FORBIDDEN_IMPORTS: dict[str, set[str]] = {
    "domain": {"application", "infrastructure", "presentation"},
    "application": {"infrastructure", "presentation"},
    "presentation": {"infrastructure"},
}


@dataclass(frozen=True)
class ImportEdge:
    source: str
    target: str


def _path_to_module(path: Path) -> str:
    relative = path.relative_to(ROOT / "src")
    return ".".join(relative.with_suffix("").parts)


def _module_to_layer(module: str) -> str | None:
    parts = module.split(".")
    if len(parts) < 2 or parts[0] != "tavern":
        return None
    return parts[1] if parts[1] in LAYERS else None


def _imported_modules(tree: ast.AST) -> list[str]:
    targets: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            targets.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            targets.append(node.module)
    return targets


def _load_module_graph() -> tuple[dict[str, Path], list[ImportEdge]]:
    module_files = {_path_to_module(path): path for path in SRC_ROOT.rglob("*.py")}
    edges: list[ImportEdge] = []
    for module_name, path in module_files.items():
        tree = ast.parse(path.read_text(encoding="utf-8-sig"))
        for target in _imported_modules(tree):
            if not target.startswith("tavern"):
                continue
            while target and target not in module_files and "." in target:
                target = target.rsplit(".", 1)[0]
            if target in module_files and target != module_name:
                edges.append(ImportEdge(source=module_name, target=target))
    return module_files, edges


def _find_cycle(graph: dict[str, set[str]]) -> list[str]:
    state: dict[str, int] = {}
    stack: list[str] = []

    def dfs(node: str) -> list[str]:
        state[node] = 1
        stack.append(node)
        for nxt in sorted(graph.get(node, set())):
            if state.get(nxt, 0) == 0:
                cycle = dfs(nxt)
                if cycle:
                    return cycle
            elif state[nxt] == 1:
                return stack[stack.index(nxt):] + [nxt]
        stack.pop()
        state[node] = 2
        return []

    for node in sorted(graph):
        if state.get(node, 0) == 0:
            cycle = dfs(node)
            if cycle:
                return cycle
    return []


class ArchitectureGuardrailTests(unittest.TestCase):
    def test_layers_only_import_downstream(self) -> None:
        module_files, edges = _load_module_graph()
        violations: list[str] = []

        for edge in edges:
            source_layer = _module_to_layer(edge.source)
            target_layer = _module_to_layer(edge.target)
            if target_layer in FORBIDDEN_IMPORTS.get(source_layer or "", set()):
                source_path = module_files[edge.source].relative_to(ROOT)
                target_path = module_files[edge.target].relative_to(ROOT)
                violations.append(f"{source_path} -> {target_path}")

        self.assertEqual([], violations, "Layer imports an upstream layer")

    def test_import_graph_has_no_cycles(self) -> None:
        modules, edges = _load_module_graph()
        graph: dict[str, set[str]] = {module: set() for module in modules}
        for edge in edges:
            graph[edge.source].add(edge.target)

        cycle = _find_cycle(graph)
        self.assertEqual([], cycle, f"Import cycle detected: {' -> '.join(cycle)}")

    def test_domain_has_no_third_party_imports(self) -> None:
        allowed_roots = {"tavern", "__future__"} | set(sys.stdlib_module_names)
        violations: list[str] = []

        for path in (SRC_ROOT / "domain").rglob("*.py"):
            tree = ast.parse(path.read_text(encoding="utf-8-sig"))
            for target in _imported_modules(tree):
                if target.split(".")[0] not in allowed_roots:
                    violations.append(f"{path.relative_to(ROOT)}: {target}")

        self.assertEqual([], violations)


if __name__ == "__main__":
    unittest.main()
