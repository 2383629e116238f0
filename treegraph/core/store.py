"""
Node/link store.

Append-only arena of GraphNode records addressed by integer handles.
The store is the only owner of node lifetime: nodes are never removed
individually, the whole store is cleared on session reset.
"""

from typing import Dict, Any, Iterator, List, Optional, Tuple
import uuid

from .math_utils import Vector2D
from .node import GraphNode, GraphLink, identity_key
from ..errors import TreeInvariantError


class NodeStore:
    """Insertion-ordered nodes and links for one session."""

    def __init__(self):
        self._nodes: List[GraphNode] = []
        self._links: List[GraphLink] = []
        self._by_description: Dict[str, int] = {}
        self._session = uuid.uuid4().hex[:8]

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _new_node(self, description: str, image: Optional[str], identity: Any,
                  position: Vector2D, extent: float,
                  parent: Optional[GraphNode]) -> GraphNode:
        if description in self._by_description:
            raise TreeInvariantError(f"Description already in tree: {description!r}")
        handle = len(self._nodes)
        node = GraphNode(
            handle=handle,
            instance_id=f"{self._session}-{handle}",
            description=description,
            image=image,
            identity=identity,
            position=position.copy(),
            extent=extent,
            parent=parent.handle if parent is not None else None,
            depth=parent.depth + 1 if parent is not None else 0,
        )
        self._nodes.append(node)
        self._by_description[description] = handle
        return node

    def add_root(self, description: str, image: Optional[str] = None,
                 identity: Any = None, position: Optional[Vector2D] = None,
                 extent: float = 30.0) -> GraphNode:
        """Create the single root node. Fails if a root already exists."""
        if self._nodes:
            raise TreeInvariantError("Store already has a root")
        node = self._new_node(description, image, identity,
                              position or Vector2D(), extent, None)
        # Root is pinned, so it is always at rest
        node.resting = True
        return node

    def add_child(self, parent_handle: int, description: str,
                  image: Optional[str] = None, identity: Any = None,
                  position: Optional[Vector2D] = None, extent: float = 30.0,
                  similarity_score: Optional[float] = None) -> Tuple[GraphNode, GraphLink]:
        """
        Create a node under parent_handle together with its link.

        Returns:
            (new node, new link)
        """
        parent = self.get(parent_handle)
        node = self._new_node(description, image, identity,
                              position or parent.position, extent, parent)
        parent.children.append(node.handle)
        link = GraphLink(source=parent.handle, target=node.handle,
                         similarity_score=similarity_score)
        self._links.append(link)
        return node, link

    def clear(self) -> None:
        """Discard everything and start a new session token."""
        self._nodes.clear()
        self._links.clear()
        self._by_description.clear()
        self._session = uuid.uuid4().hex[:8]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, handle: int) -> GraphNode:
        if handle < 0 or handle >= len(self._nodes):
            raise KeyError(f"Unknown node handle: {handle}")
        return self._nodes[handle]

    @property
    def root(self) -> Optional[GraphNode]:
        return self._nodes[0] if self._nodes else None

    @property
    def nodes(self) -> List[GraphNode]:
        return self._nodes

    @property
    def links(self) -> List[GraphLink]:
        return self._links

    def find_by_description(self, description: str) -> Optional[GraphNode]:
        handle = self._by_description.get(description)
        return self._nodes[handle] if handle is not None else None

    def has_description(self, description: str) -> bool:
        return description in self._by_description

    def find_by_identity(self, identity: Any) -> Optional[GraphNode]:
        key = identity_key(identity)
        if key is None:
            return None
        for node in self._nodes:
            if identity_key(node.identity) == key:
                return node
        return None

    def find_by_instance_id(self, instance_id: str) -> Optional[GraphNode]:
        for node in self._nodes:
            if node.instance_id == instance_id:
                return node
        return None

    def parent_of(self, node: GraphNode) -> Optional[GraphNode]:
        return self._nodes[node.parent] if node.parent is not None else None

    def children_of(self, node: GraphNode) -> List[GraphNode]:
        return [self._nodes[h] for h in node.children]

    @property
    def max_depth(self) -> int:
        return max((n.depth for n in self._nodes), default=0)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._nodes)

    def __repr__(self) -> str:
        return f"NodeStore(nodes={len(self._nodes)}, links={len(self._links)})"
