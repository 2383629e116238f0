"""
Exploration session.

Owns the state the engine only reads: visit history, the similarity map
and the active node. User actions (search, picking a similar record,
clicking a node in the tree) update that state, fetch what is missing from
the collection client, and push the result into the engine.

Fetch failures become a user-visible `error` message; they never reach the
engine's frame loop.
"""

from typing import Any, Dict, List, Optional
import logging

from .client import CollectionClient
from .core.node import GraphNode, identity_key
from .engine import TreeGraphEngine
from .errors import DataSourceError

logger = logging.getLogger(__name__)

LOAD_OBJECT_ERROR = "Unable to load object. Please try again later."
LOAD_SIMILAR_ERROR = "Unable to load similar objects. Please try again later."


def _description(record: Dict[str, Any]) -> Optional[str]:
    return record.get('text_for_embedding', record.get('description'))


class ExplorationSession:
    """History, similar records and active node for one browsing session."""

    def __init__(self, engine: TreeGraphEngine, client: CollectionClient):
        self.engine = engine
        self.client = client
        self.history: List[Dict[str, Any]] = []
        self.similarity_map: Dict[str, List[Dict[str, Any]]] = {}
        self.similar_objects: List[Dict[str, Any]] = []
        self.current_object: Optional[Dict[str, Any]] = None
        self.active_node: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        engine.set_on_node_select(self.handle_node_select)

    # =========================================================================
    # FETCHING
    # =========================================================================

    def fetch_similar(self, record: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Fetch and remember the similar records of a visited record."""
        identity = record.get('id', record.get('identity'))
        if identity is None:
            logger.info("No identity on %r, nothing to fetch", _description(record))
            return []
        try:
            similar = self.client.similar_objects(identity)
        except DataSourceError as e:
            logger.warning("Similar objects for %s failed: %s", identity, e)
            self.error = LOAD_SIMILAR_ERROR
            return []
        self.similarity_map[identity_key(identity)] = similar
        self.similar_objects = similar
        return similar

    # =========================================================================
    # USER ACTIONS
    # =========================================================================

    def search(self, query: str) -> Optional[Dict[str, Any]]:
        """Free-text search; the hit is appended to history."""
        try:
            record = self.client.search_object(query)
        except DataSourceError as e:
            logger.warning("Search for %r failed: %s", query, e)
            self.error = LOAD_OBJECT_ERROR
            return None
        if record is None:
            self.error = f"No object found for {query!r}."
            return None

        self.error = None
        self.current_object = record
        self.history.append(record)
        self.fetch_similar(record)
        self.sync()
        return record

    def select_similar(self, record: Dict[str, Any]) -> None:
        """The user picked one of the offered similar records."""
        self.history.append(record)
        self.current_object = record
        self.active_node = record
        self.similar_objects = []
        self.fetch_similar(record)
        self.sync()

    def handle_node_select(self, node: GraphNode) -> None:
        """
        A node in the tree was clicked.

        Visited records are restored from what was already fetched; other
        nodes get fresh similar records.
        """
        active = {
            'id': node.identity,
            'text_for_embedding': node.description,
            'Image': node.image,
        }
        visited = next((item for item in self.history
                        if _description(item) == node.description), None)
        if visited is not None:
            self.current_object = visited
            key = identity_key(visited.get('id', visited.get('identity')))
            self.similar_objects = self.similarity_map.get(key, [])
        else:
            self.current_object = active
            self.fetch_similar(active)
        self.active_node = active
        self.sync()

    # =========================================================================
    # STATE
    # =========================================================================

    def sync(self, now_ms: Optional[float] = None) -> List[GraphNode]:
        """Push current state into the engine."""
        return self.engine.update(self.history, self.similarity_map, self.active_node, now_ms)

    def reset(self) -> None:
        """Forget everything, as when navigating away."""
        self.history.clear()
        self.similarity_map.clear()
        self.similar_objects = []
        self.current_object = None
        self.active_node = None
        self.error = None
        self.engine.reset()
