"""
Structural validation for a NodeStore.

Checks the tree invariants the builder is supposed to keep:
- exactly one root, at depth 0
- depth == parent.depth + 1 for every other node
- descriptions are unique across the whole tree
- every node is reachable from the root
- links mirror parent -> child edges, one link per child
"""

from typing import Any, Dict, List, Set
from dataclasses import dataclass, field

from .core.store import NodeStore


@dataclass
class ValidationResult:
    """Outcome of validate_tree()."""

    total_nodes: int = 0
    total_links: int = 0
    reachable_nodes: int = 0
    max_depth: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_tree(store: NodeStore) -> ValidationResult:
    """Run every structural check against store."""
    nodes = store.nodes
    result = ValidationResult(total_nodes=len(nodes), total_links=len(store.links),
                              max_depth=store.max_depth)
    if not nodes:
        return result

    roots = [n for n in nodes if n.parent is None]
    if len(roots) != 1:
        result.errors.append(f"Expected exactly one root, found {len(roots)}")
    for root in roots:
        if root.depth != 0:
            result.errors.append(f"Root {root.description!r} has depth {root.depth}")

    seen: Dict[str, int] = {}
    for node in nodes:
        if node.description in seen:
            result.errors.append(
                f"Duplicate description {node.description!r} "
                f"(handles {seen[node.description]} and {node.handle})")
        else:
            seen[node.description] = node.handle

        if node.parent is None:
            continue
        if node.parent < 0 or node.parent >= len(nodes):
            result.errors.append(f"Node {node.handle} has unknown parent {node.parent}")
            continue
        parent = nodes[node.parent]
        if node.depth != parent.depth + 1:
            result.errors.append(
                f"Node {node.description!r} depth {node.depth} != parent depth {parent.depth} + 1")
        if node.handle not in parent.children:
            result.errors.append(
                f"Node {node.description!r} missing from children of {parent.description!r}")

    # Reachability via children lists from root
    reachable: Set[int] = set()
    if roots:
        stack = [roots[0].handle]
        while stack:
            handle = stack.pop()
            if handle in reachable:
                result.errors.append(f"Cycle through node {handle}")
                continue
            reachable.add(handle)
            stack.extend(nodes[handle].children)
    result.reachable_nodes = len(reachable)
    for node in nodes:
        if node.handle not in reachable:
            result.errors.append(f"Node {node.description!r} not reachable from root")

    linked_targets: Set[int] = set()
    for link in store.links:
        if link.target in linked_targets:
            result.errors.append(f"Node {link.target} is the target of more than one link")
        linked_targets.add(link.target)
        if link.target >= len(nodes) or nodes[link.target].parent != link.source:
            result.errors.append(f"Link {link.source}->{link.target} is not a tree edge")
    missing = len(nodes) - len(roots) - len(linked_targets)
    if missing > 0:
        result.warnings.append(f"{missing} non-root nodes have no link")

    return result


def get_validation_summary(result: ValidationResult) -> Dict[str, Any]:
    """Reduce a ValidationResult to a flat dict for reports."""
    return {
        'valid': result.valid,
        'total_nodes': result.total_nodes,
        'total_links': result.total_links,
        'reachable_nodes': result.reachable_nodes,
        'max_depth': result.max_depth,
        'total_errors': len(result.errors),
        'total_warnings': len(result.warnings),
    }
