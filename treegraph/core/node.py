"""
Node, link and record types.

Provides:
- VisitRecord / NeighborRecord / ActiveNode: inputs fed by collaborators
- GraphNode: a placed node with physics state, referenced by handle
- GraphLink: a parent -> child edge between two handles
"""

from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from .math_utils import Vector2D


def _first(d: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, so wire names and engine names both work."""
    for key in keys:
        if key in d and d[key] is not None:
            return d[key]
    return default


def identity_key(identity: Any) -> Optional[str]:
    """Similarity map keys compare as strings: 1 and "1" are the same record."""
    if identity is None:
        return None
    return str(identity)


@dataclass(frozen=True)
class VisitRecord:
    """A record the user has visited, in history order."""

    description: str
    image: Optional[str] = None
    identity: Optional[Any] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'VisitRecord':
        return cls(
            description=str(_first(d, 'description', 'text_for_embedding', default='')),
            image=_first(d, 'image', 'Image'),
            identity=_first(d, 'identity', 'id'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'identity': self.identity, 'description': self.description, 'image': self.image}


@dataclass(frozen=True)
class NeighborRecord:
    """A similar record offered for a visited record."""

    description: str
    image: Optional[str] = None
    identity: Optional[Any] = None
    similarity_score: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'NeighborRecord':
        score = _first(d, 'similarity_score', 'similarityScore', 'score')
        return cls(
            description=str(_first(d, 'description', 'text_for_embedding', default='')),
            image=_first(d, 'image', 'Image'),
            identity=_first(d, 'identity', 'id'),
            similarity_score=float(score) if score is not None else None,
        )

    def to_visit(self) -> VisitRecord:
        return VisitRecord(description=self.description, image=self.image, identity=self.identity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identity': self.identity,
            'description': self.description,
            'image': self.image,
            'similarity_score': self.similarity_score,
        }


@dataclass(frozen=True)
class ActiveNode:
    """The node the caller currently considers selected."""

    description: str
    image: Optional[str] = None
    identity: Optional[Any] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ActiveNode':
        return cls(
            description=str(_first(d, 'description', 'text_for_embedding', default='')),
            image=_first(d, 'image', 'Image'),
            identity=_first(d, 'identity', 'id'),
        )


@dataclass
class GraphNode:
    """
    A node placed in the tree.

    Structural references are integer handles into the owning NodeStore,
    never object references: `parent` is None only for the root.
    """

    handle: int
    instance_id: str
    description: str
    image: Optional[str] = None
    identity: Optional[Any] = None
    position: Vector2D = field(default_factory=Vector2D)
    velocity: Vector2D = field(default_factory=Vector2D)
    extent: float = 30.0
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    depth: int = 0
    resting: bool = False
    selected: bool = False

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def to_dict(self) -> Dict[str, Any]:
        """Render-facing snapshot of the node."""
        return {
            'instance_id': self.instance_id,
            'identity': self.identity,
            'description': self.description,
            'image': self.image,
            'x': self.position.x,
            'y': self.position.y,
            'radius': self.extent,
            'depth': self.depth,
            'parent': self.parent,
            'resting': self.resting,
            'selected': self.selected,
        }

    def __repr__(self) -> str:
        return f"GraphNode({self.handle}, {self.description!r}, depth={self.depth})"


@dataclass
class GraphLink:
    """Edge mirroring a parent -> child relation."""

    source: int
    target: int
    similarity_score: Optional[float] = None
    # Captured once, the first time both endpoints rest together
    initial_angle: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'target': self.target,
            'similarity_score': self.similarity_score,
        }
