"""Detection of peripheral nodes that share text across clusters."""

from __future__ import annotations

from collections.abc import Iterable

from wordsplainer.models.graph_models import Link, LinkKind, Node


def normalize_text(text: str) -> str:
    """Case-insensitive, whitespace-collapsed form used for text equality."""
    return " ".join(text.split()).lower()


def find_cross_connections(nodes: Iterable[Node]) -> list[Link]:
    """Link every pair of peripheral nodes in different clusters with equal text.

    Quadratic in the number of peripheral nodes; pagination keeps that number
    in the low tens per cluster.
    """
    peripheral = [
        (node, normalize_text(node.text))
        for node in nodes
        if node.kind.is_peripheral and node.text.strip()
    ]

    links: list[Link] = []
    for i, (a, a_text) in enumerate(peripheral):
        for b, b_text in peripheral[i + 1:]:
            if a.cluster_id != b.cluster_id and a_text == b_text:
                links.append(Link.between(a.id, b.id, LinkKind.CROSS_CLUSTER))
    return links
