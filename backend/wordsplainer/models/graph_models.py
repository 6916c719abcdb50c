"""Pydantic models for the word graph: clusters, nodes, links, snapshots."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from wordsplainer.models.content_models import Language, RelationType


class NodeKind(str, Enum):
    """Tag of the node union. Relation kinds share their value with RelationType."""

    CENTRAL = "central"
    MEANING = "meaning"
    CONTEXT = "context"
    DERIVATIVES = "derivatives"
    IDIOMS = "idioms"
    COLLOCATIONS = "collocations"
    SYNONYMS = "synonyms"
    OPPOSITES = "opposites"
    TRANSLATION = "translation"
    EXAMPLE = "example"
    ADD = "add"

    @classmethod
    def for_relation(cls, relation: RelationType) -> NodeKind:
        return cls(relation.value)

    @property
    def relation(self) -> RelationType | None:
        """The relation type for relation kinds, None for structural kinds."""
        try:
            return RelationType(self.value)
        except ValueError:
            return None

    @property
    def is_relation(self) -> bool:
        return self.relation is not None

    @property
    def is_peripheral(self) -> bool:
        return self is not NodeKind.CENTRAL


class LinkKind(str, Enum):
    DEFAULT = "default"
    EXAMPLE = "example"
    CROSS_CLUSTER = "cross-cluster"


class ExpansionState(str, Enum):
    COLLAPSED = "collapsed"
    PENDING = "pending"


class Point(BaseModel):
    x: float = 0.0
    y: float = 0.0


class PaginationCursor(BaseModel):
    offset: int = 0
    has_more: bool = True
    total: int | None = None


class ViewState(BaseModel):
    """Pagination of the active cluster's active view, as shown by the UI."""

    offset: int = 0
    has_more: bool = False
    total: int | None = None


class Node(BaseModel):
    """A node of the word graph.

    Layout fields (``x``, ``y``, ``vx``, ``vy``, ``fx``, ``fy``) are owned by
    the layout engine; everything else is owned by the GraphModel.
    """

    id: str
    kind: NodeKind
    cluster_id: str
    text: str = ""
    examples: list[str] = []
    translation_data: dict[str, str] | None = None
    example_translations: dict[str, dict[str, str]] | None = None
    language: Language | None = None
    explanation: str | None = None
    translation: str | None = None
    source_node_id: str | None = None

    x: float | None = None
    y: float | None = None
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None  # pinned position while dragged
    fy: float | None = None

    @property
    def is_central(self) -> bool:
        return self.kind is NodeKind.CENTRAL


class Link(BaseModel):
    id: str  # "{source}->{target}:{kind}"
    source: str
    target: str
    kind: LinkKind = LinkKind.DEFAULT

    @classmethod
    def between(cls, source: str, target: str, kind: LinkKind = LinkKind.DEFAULT) -> Link:
        return cls(id=f"{source}->{target}:{kind.value}", source=source, target=target, kind=kind)


class Cluster(BaseModel):
    """One central word plus every node fetched for it."""

    id: str  # normalized central word
    word: str  # as typed
    center: Point = Field(default_factory=Point)
    active_view: RelationType = RelationType.MEANING
    language: Language | None = None
    cursors: dict[RelationType, PaginationCursor] = {}
    nodes: list[Node] = []
    links: list[Link] = []
    pending_expansions: set[str] = set()

    @property
    def central_id(self) -> str:
        return f"central-{self.id}"

    @property
    def add_id(self) -> str:
        return f"add-{self.id}"

    @property
    def pagination_cursor(self) -> PaginationCursor:
        return self.cursors.setdefault(self.active_view, PaginationCursor())


class GraphSnapshot(BaseModel):
    """Consolidated, read-only view of the whole graph for renderers."""

    nodes: list[Node] = []
    links: list[Link] = []
