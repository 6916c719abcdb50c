"""Authoritative in-memory word graph.

The GraphModel owns every cluster, node and link. Callers mutate it only
through the operations below; each operation leaves the graph consistent
(add-node last in its cluster, cross-cluster links recomputed).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from wordsplainer.config import LayoutSettings
from wordsplainer.errors import MalformedResponse, NotDetachable
from wordsplainer.graph.cross_connections import find_cross_connections, normalize_text
from wordsplainer.graph.layout import compute_cluster_centers
from wordsplainer.models.content_models import (
    ContentItem,
    ContentResponse,
    ExampleResponse,
    Language,
    RelationType,
)
from wordsplainer.models.graph_models import (
    Cluster,
    ExpansionState,
    GraphSnapshot,
    Link,
    LinkKind,
    Node,
    NodeKind,
    PaginationCursor,
    Point,
)

logger = logging.getLogger(__name__)


# Cluster ids never contain ":" (words are letters, spaces, hyphens and
# apostrophes), so only relation keys hold "::" and their view suffix keeps
# them apart from "<source>-ex" example keys.
def relation_node_id(cluster_id: str, text: str, view: RelationType) -> str:
    return f"{cluster_id}::{normalize_text(text)}::{view.value}"


def example_node_id(source_id: str) -> str:
    return f"{source_id}-ex"


class GraphModel:
    def __init__(
        self,
        width: float = 1200.0,
        height: float = 800.0,
        layout_settings: LayoutSettings | None = None,
    ):
        self.width = width
        self.height = height
        self._ring_radius = (layout_settings or LayoutSettings()).cluster_ring_radius
        self._clusters: dict[str, Cluster] = {}
        self._cross_links: list[Link] = []
        self.active_cluster_id: str | None = None

    # --- Read API ---

    @property
    def clusters(self) -> list[Cluster]:
        return list(self._clusters.values())

    @property
    def cross_links(self) -> list[Link]:
        return list(self._cross_links)

    @property
    def active_cluster(self) -> Cluster | None:
        if self.active_cluster_id is None:
            return None
        return self._clusters.get(self.active_cluster_id)

    def get_cluster(self, cluster_id: str) -> Cluster | None:
        return self._clusters.get(cluster_id)

    def cluster_for_word(self, word: str) -> Cluster | None:
        return self._clusters.get(normalize_text(word))

    def find_node(self, node_id: str) -> Node | None:
        located = self._locate(node_id)
        return located[1] if located else None

    def iter_nodes(self) -> Iterator[Node]:
        for cluster in self._clusters.values():
            yield from cluster.nodes

    def snapshot(self) -> GraphSnapshot:
        """Consolidated node/link lists across clusters, cross links included."""
        links = [link for c in self._clusters.values() for link in c.links]
        return GraphSnapshot.model_construct(
            nodes=list(self.iter_nodes()),
            links=links + self._cross_links,
        )

    def centers(self) -> dict[str, Point]:
        return {c.id: c.center for c in self._clusters.values()}

    # --- Cluster lifecycle ---

    def create_cluster(self, word: str) -> Cluster:
        """Return the cluster for ``word``, creating it (central node only) if needed."""
        cluster_id = normalize_text(word)
        if not cluster_id:
            raise ValueError("Cannot create a cluster for an empty word")
        existing = self._clusters.get(cluster_id)
        if existing is not None:
            return existing

        display = " ".join(word.split())
        cluster = Cluster(id=cluster_id, word=display)
        cluster.cursors[cluster.active_view] = PaginationCursor()
        cluster.nodes.append(
            Node(id=cluster.central_id, kind=NodeKind.CENTRAL, cluster_id=cluster_id, text=display)
        )
        self._clusters[cluster_id] = cluster
        self._reposition_clusters()

        central = cluster.nodes[0]
        central.x, central.y = cluster.center.x, cluster.center.y
        logger.info("Created cluster %r (%d active)", cluster_id, len(self._clusters))
        return cluster

    def set_active(self, cluster_id: str) -> Cluster:
        cluster = self._require(cluster_id)
        self.active_cluster_id = cluster_id
        return cluster

    def set_viewport(self, width: float, height: float) -> None:
        if (width, height) == (self.width, self.height):
            return
        self.width, self.height = width, height
        self._reposition_clusters()

    def clear_all(self) -> None:
        self._clusters.clear()
        self._cross_links = []
        self.active_cluster_id = None

    def _reposition_clusters(self) -> None:
        centers = compute_cluster_centers(
            len(self._clusters), self.width, self.height, self._ring_radius
        )
        for cluster, center in zip(self._clusters.values(), centers):
            cluster.center = center

    # --- Relation views ---

    def replace_view_nodes(
        self,
        cluster_id: str,
        view: RelationType,
        response: ContentResponse,
        language: Language | None = None,
    ) -> list[Node]:
        """Swap the cluster's content for a freshly fetched first page of ``view``.

        Afterwards the cluster holds its central node, the new relation nodes
        and exactly one add-node; nothing from the previous view survives.
        """
        cluster = self._require(cluster_id)
        keep = {cluster.central_id, cluster.add_id}
        cluster.nodes = [n for n in cluster.nodes if n.id in keep]
        cluster.links = [l for l in cluster.links if l.source in keep and l.target in keep]
        cluster.pending_expansions.clear()

        cluster.active_view = view
        cluster.language = language if view is RelationType.TRANSLATION else None
        inserted = self._insert_items(cluster, response)
        self._ensure_add_node(cluster)
        cluster.cursors[view] = PaginationCursor(
            offset=len(response.nodes),
            has_more=response.has_more,
            total=response.total,
        )
        self.recompute_cross_connections()
        return inserted

    def append_view_nodes(self, cluster_id: str, response: ContentResponse) -> list[Node]:
        """Add the next page of the active view, skipping ids already present.

        The offset advances by the number of items fetched, not inserted, so
        the cursor stays aligned with the service's pagination.
        """
        cluster = self._require(cluster_id)
        inserted = self._insert_items(cluster, response)
        self._ensure_add_node(cluster)

        cursor = cluster.pagination_cursor
        cursor.offset += len(response.nodes)
        cursor.has_more = response.has_more
        if response.total is not None:
            cursor.total = response.total
        self.recompute_cross_connections()
        return inserted

    def mark_exhausted(self, cluster_id: str) -> None:
        self._require(cluster_id).pagination_cursor.has_more = False

    def _insert_items(self, cluster: Cluster, response: ContentResponse) -> list[Node]:
        view = cluster.active_view
        kind = NodeKind.for_relation(view)
        central_text = normalize_text(cluster.word)
        present = {n.id for n in cluster.nodes}
        inserted: list[Node] = []

        for item in response.nodes:
            text = item.text.strip()
            if not text:
                continue
            # A translation may legitimately spell the same as the source word
            if view is not RelationType.TRANSLATION and normalize_text(text) == central_text:
                logger.debug("Suppressed central word %r in %s view", text, view.value)
                continue
            node_id = relation_node_id(cluster.id, text, view)
            if node_id in present:
                logger.debug("Suppressed duplicate %r in cluster %r", text, cluster.id)
                continue

            node = self._relation_node(cluster, kind, node_id, text, item, response)
            self._insert_before_add(cluster, node)
            cluster.links.append(Link.between(cluster.central_id, node_id))
            present.add(node_id)
            inserted.append(node)
        return inserted

    @staticmethod
    def _relation_node(
        cluster: Cluster,
        kind: NodeKind,
        node_id: str,
        text: str,
        item: ContentItem,
        response: ContentResponse,
    ) -> Node:
        node = Node(
            id=node_id,
            kind=kind,
            cluster_id=cluster.id,
            text=text,
            examples=list(item.examples),
        )
        if kind is NodeKind.TRANSLATION:
            node.language = cluster.language
            node.translation_data = item.translation_data
            node.example_translations = response.example_translations
        return node

    def _ensure_add_node(self, cluster: Cluster) -> None:
        """Keep exactly one add-node, always last in the cluster's node order."""
        existing = [n for n in cluster.nodes if n.kind is NodeKind.ADD]
        cluster.nodes = [n for n in cluster.nodes if n.kind is not NodeKind.ADD]
        if existing:
            cluster.nodes.append(existing[0])
            return
        cluster.nodes.append(Node(id=cluster.add_id, kind=NodeKind.ADD, cluster_id=cluster.id))
        cluster.links.append(Link.between(cluster.central_id, cluster.add_id))

    @staticmethod
    def _insert_before_add(cluster: Cluster, node: Node) -> None:
        for i, existing in enumerate(cluster.nodes):
            if existing.kind is NodeKind.ADD:
                cluster.nodes.insert(i, node)
                return
        cluster.nodes.append(node)

    # --- Expansions ---

    def toggle_expansion(self, node_id: str) -> ExpansionState:
        """Collapse the node's example if shown, otherwise mark it pending a fetch."""
        cluster, node = self._require_node(node_id)
        if not node.kind.is_relation:
            raise ValueError(f"Node {node_id!r} ({node.kind.value}) has no expansion")

        if self._remove_nodes(cluster, {example_node_id(node_id)}):
            cluster.pending_expansions.discard(node_id)
            self.recompute_cross_connections()
            return ExpansionState.COLLAPSED

        cluster.pending_expansions.add(node_id)
        return ExpansionState.PENDING

    def build_example_node(self, node_id: str, example: ExampleResponse) -> Node:
        """Turn a generated example into an example node for ``node_id``."""
        cluster, source = self._require_node(node_id)
        if source.kind is NodeKind.TRANSLATION:
            text, translation = example.english_example, example.translated_example
        else:
            text, translation = example.example, None
        if not text and source.kind is NodeKind.IDIOMS:
            text = example.explanation
        if not text:
            raise MalformedResponse(f"No example text for {node_id!r}")

        return Node(
            id=example_node_id(node_id),
            kind=NodeKind.EXAMPLE,
            cluster_id=cluster.id,
            text=text.strip(),
            explanation=example.explanation if source.kind is NodeKind.IDIOMS else None,
            translation=translation,
            language=source.language,
            source_node_id=node_id,
        )

    def attach_expansion(self, node_id: str, example_node: Node) -> bool:
        """Insert ``example_node`` under ``node_id``; no-op if one is already shown.

        Also a no-op when the source node vanished while the example was
        being fetched (view switched, node detached, graph cleared).
        """
        located = self._locate(node_id)
        if located is None:
            logger.info("Dropped example for vanished node %r", node_id)
            return False
        cluster, _ = located
        cluster.pending_expansions.discard(node_id)

        example_id = example_node_id(node_id)
        if any(n.id == example_id for n in cluster.nodes):
            return False

        example_node.id = example_id
        example_node.kind = NodeKind.EXAMPLE
        example_node.cluster_id = cluster.id
        example_node.source_node_id = node_id
        self._insert_before_add(cluster, example_node)
        cluster.links.append(Link.between(node_id, example_id, LinkKind.EXAMPLE))
        self.recompute_cross_connections()
        return True

    def cancel_expansion(self, node_id: str) -> None:
        located = self._locate(node_id)
        if located is not None:
            located[0].pending_expansions.discard(node_id)

    def is_expanded(self, node_id: str) -> bool:
        return self.find_node(example_node_id(node_id)) is not None

    # --- Detach / promote ---

    def detach_node(self, node_id: str) -> str:
        """Remove a peripheral node (with its link and expansion) and return its text."""
        cluster, node = self._require_node(node_id)
        if node.kind in (NodeKind.CENTRAL, NodeKind.ADD):
            raise NotDetachable(node_id)

        self._remove_nodes(cluster, {node_id, example_node_id(node_id)})
        cluster.pending_expansions.discard(node_id)
        self.recompute_cross_connections()
        logger.info("Detached %r from cluster %r", node_id, cluster.id)
        return node.text

    # --- Cross connections ---

    def recompute_cross_connections(self) -> list[Link]:
        self._cross_links = find_cross_connections(self.iter_nodes())
        return self.cross_links

    # --- Internals ---

    def _locate(self, node_id: str) -> tuple[Cluster, Node] | None:
        for cluster in self._clusters.values():
            for node in cluster.nodes:
                if node.id == node_id:
                    return cluster, node
        return None

    def _require(self, cluster_id: str) -> Cluster:
        cluster = self._clusters.get(cluster_id)
        if cluster is None:
            raise KeyError(f"Unknown cluster {cluster_id!r}")
        return cluster

    def _require_node(self, node_id: str) -> tuple[Cluster, Node]:
        located = self._locate(node_id)
        if located is None:
            raise KeyError(f"Unknown node {node_id!r}")
        return located

    @staticmethod
    def _remove_nodes(cluster: Cluster, node_ids: set[str]) -> bool:
        before = len(cluster.nodes)
        cluster.nodes = [n for n in cluster.nodes if n.id not in node_ids]
        cluster.links = [
            l for l in cluster.links if l.source not in node_ids and l.target not in node_ids
        ]
        return len(cluster.nodes) != before
