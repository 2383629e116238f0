"""
Tree Builder Module

Grows the visit tree from a linear history plus per-record neighbor lists.
Implements tree building rules:
- One root: the first visited record
- Every later visited record sits on a path below the root
- Neighbors of the active record attach under the active node
- Global dedup: no two nodes anywhere share a description
- Append-only: nothing created here is ever removed
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from .config import LayoutConfig
from .core.math_utils import Vector2D
from .core.node import (
    ActiveNode,
    GraphNode,
    NeighborRecord,
    VisitRecord,
    identity_key,
)
from .core.store import NodeStore
from .errors import InputValidationError, TreeInvariantError

logger = logging.getLogger(__name__)


# =============================================================================
# INPUT COERCION
# =============================================================================

def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def coerce_history(history: Any) -> List[VisitRecord]:
    """Turn a history sequence of dicts or records into VisitRecords."""
    if history is None:
        return []
    if not _is_sequence(history):
        raise InputValidationError(
            f"history must be a sequence, got {type(history).__name__}")

    records = []
    for index, item in enumerate(history):
        if isinstance(item, VisitRecord):
            record = item
        elif isinstance(item, NeighborRecord):
            record = item.to_visit()
        elif isinstance(item, Mapping):
            record = VisitRecord.from_dict(item)
        else:
            raise InputValidationError(
                f"history[{index}] must be a mapping, got {type(item).__name__}")
        if not record.description:
            raise InputValidationError(f"history[{index}] has no description")
        records.append(record)
    return records


def coerce_similarity_map(similarity_map: Any) -> Dict[str, List[NeighborRecord]]:
    """Turn a mapping of identity -> neighbor list into NeighborRecords keyed by str."""
    if similarity_map is None:
        return {}
    if not isinstance(similarity_map, Mapping):
        raise InputValidationError(
            f"similarity map must be a mapping, got {type(similarity_map).__name__}")

    result: Dict[str, List[NeighborRecord]] = {}
    for key, neighbors in similarity_map.items():
        if neighbors is None:
            continue
        if not _is_sequence(neighbors):
            raise InputValidationError(
                f"neighbors for {key!r} must be a sequence, got {type(neighbors).__name__}")
        records = []
        for item in neighbors:
            if isinstance(item, NeighborRecord):
                records.append(item)
            elif isinstance(item, Mapping):
                try:
                    records.append(NeighborRecord.from_dict(item))
                except (TypeError, ValueError) as e:
                    raise InputValidationError(
                        f"neighbor of {key!r} has a non-numeric similarity score") from e
            else:
                raise InputValidationError(
                    f"neighbor of {key!r} must be a mapping, got {type(item).__name__}")
        result[identity_key(key)] = records
    return result


def coerce_active_node(active: Any) -> Optional[ActiveNode]:
    """Accept None, a dict, an ActiveNode, a record, or a GraphNode."""
    if active is None:
        return None
    if isinstance(active, ActiveNode):
        return active
    if isinstance(active, (GraphNode, VisitRecord, NeighborRecord)):
        return ActiveNode(description=active.description, image=active.image,
                          identity=active.identity)
    if isinstance(active, Mapping):
        return ActiveNode.from_dict(active)
    raise InputValidationError(
        f"active node must be a mapping or node, got {type(active).__name__}")


# =============================================================================
# BUILDER
# =============================================================================

class TreeBuilder:
    """Mutates a NodeStore in response to new history/neighbor data."""

    def __init__(self, store: NodeStore, layout: Optional[LayoutConfig] = None):
        """
        Initialize tree builder.

        Args:
            store: The store that will own every created node
            layout: Placement offsets or None for defaults
        """
        self.store = store
        self.layout = layout or LayoutConfig()

    def update_tree(
        self,
        history: Sequence[VisitRecord],
        similarity_map: Mapping[str, List[NeighborRecord]],
        active: Optional[ActiveNode] = None,
    ) -> List[GraphNode]:
        """
        Bring the store up to date with the given inputs.

        Args:
            history: Visited records in visit order
            similarity_map: identity key -> ordered neighbor records
            active: The caller's active node or None

        Returns:
            Nodes created by this call, in creation order. Empty when the
            inputs add nothing new, so repeated calls are idempotent.

        Raises:
            TreeInvariantError: If history[0] does not match the existing root
        """
        if not history:
            return []

        created: List[GraphNode] = []
        root = self._ensure_root(history[0], created)
        self._walk_history(root, history[1:], created)

        parent = self._resolve_attachment(root, active)
        target = self._resolve_target(history, active)
        neighbors = similarity_map.get(identity_key(target.identity))
        if neighbors:
            created.extend(self._attach_neighbors(parent, neighbors))

        if created:
            logger.debug("Tree grew by %d nodes (total %d, max depth %d)",
                         len(created), len(self.store), self.store.max_depth)
        return created

    # ------------------------------------------------------------------

    def _ensure_root(self, first: VisitRecord, created: List[GraphNode]) -> GraphNode:
        root = self.store.root
        if root is None:
            root = self.store.add_root(
                first.description, first.image, first.identity,
                position=Vector2D(0.0, 0.0), extent=self.layout.node_extent)
            created.append(root)
            logger.info("Root created: %r", root.description)
            return root
        if root.description != first.description:
            raise TreeInvariantError(
                f"History starts at {first.description!r} but root is {root.description!r}")
        return root

    def _walk_history(self, root: GraphNode, records: Sequence[VisitRecord],
                      created: List[GraphNode]) -> None:
        """Place each later visited record on a path, reusing nodes that exist."""
        path_node = root
        for record in records:
            existing = self.store.find_by_description(record.description)
            if existing is not None:
                path_node = existing
                continue
            position = Vector2D(path_node.position.x + self.layout.history_offset_x,
                                path_node.position.y + self.layout.vertical_offset)
            node, _ = self.store.add_child(
                path_node.handle, record.description, record.image, record.identity,
                position=position, extent=self.layout.node_extent)
            created.append(node)
            path_node = node

    def _resolve_attachment(self, root: GraphNode, active: Optional[ActiveNode]) -> GraphNode:
        """Active node if it is in the tree, otherwise root."""
        if active is None:
            return root
        match = self.store.find_by_description(active.description)
        if match is None:
            logger.debug("Active node %r not in tree, attaching to root", active.description)
            return root
        return match

    def _resolve_target(self, history: Sequence[VisitRecord],
                        active: Optional[ActiveNode]) -> VisitRecord:
        """Visited record matching the active node, else the last one."""
        if active is not None:
            for record in history:
                if record.description == active.description:
                    return record
        return history[-1]

    def _attach_neighbors(self, parent: GraphNode,
                          neighbors: Sequence[NeighborRecord]) -> List[GraphNode]:
        """
        Create fresh neighbors as children of parent, one level up.

        Siblings are spread around the parent x symmetrically, so an even
        count straddles the parent instead of leaning to the left of it.
        """
        fresh: List[NeighborRecord] = []
        seen = set()
        for neighbor in neighbors:
            desc = neighbor.description
            if desc == parent.description or desc in seen or self.store.has_description(desc):
                continue
            seen.add(desc)
            fresh.append(neighbor)

        count = len(fresh)
        created = []
        for i, neighbor in enumerate(fresh):
            # Centered on the parent: -1,0,1 for three, -0.5,0.5 for two
            offset = (i - (count - 1) / 2) * self.layout.sibling_spread
            position = Vector2D(parent.position.x + offset,
                                parent.position.y + self.layout.vertical_offset)
            node, _ = self.store.add_child(
                parent.handle, neighbor.description, neighbor.image, neighbor.identity,
                position=position, extent=self.layout.node_extent,
                similarity_score=neighbor.similarity_score)
            created.append(node)

        if created:
            logger.debug("Attached %d neighbors under %r", len(created), parent.description)
        return created
