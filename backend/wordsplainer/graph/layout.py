"""Incremental force layout for the multi-cluster word graph.

The engine keeps a global simulation over every node of every cluster plus
the cross-cluster links. Positions and velocities live on the Node objects
themselves; each tick gathers them into numpy arrays, applies the forces and
writes them back. Relation data is never touched.

Forces, in application order:

- link: spring toward a per-kind target distance
- repulsion: many-body charge, capped at ``charge_distance_max``
- collision: minimum separation by node radius
- cluster cohesion: pull toward the owning cluster's center point
- centering: global shift toward the viewport center
"""

from __future__ import annotations

import logging
import math

import numpy as np

from wordsplainer.config import LayoutSettings
from wordsplainer.models.graph_models import GraphSnapshot, Link, LinkKind, Node, NodeKind, Point

logger = logging.getLogger(__name__)


def compute_cluster_centers(
    count: int,
    width: float,
    height: float,
    ring_radius: float,
) -> list[Point]:
    """Center points for ``count`` clusters, in cluster creation order.

    The first cluster sits on the viewport center; the others are spread
    evenly by angle on a ring around it, starting at twelve o'clock.
    """
    cx, cy = width / 2, height / 2
    if count <= 0:
        return []

    centers = [Point(x=cx, y=cy)]
    ring = count - 1
    for i in range(ring):
        angle = -math.pi / 2 + 2 * math.pi * i / ring
        centers.append(Point(x=cx + ring_radius * math.cos(angle), y=cy + ring_radius * math.sin(angle)))
    return centers


class ClusterLayoutEngine:
    """Continuous force simulation over a GraphModel snapshot."""

    def __init__(
        self,
        settings: LayoutSettings | None = None,
        width: float = 1200.0,
        height: float = 800.0,
    ):
        self.settings = settings or LayoutSettings()
        self.width = width
        self.height = height
        self.alpha = 1.0
        self.alpha_target = self.settings.idle_alpha
        self.ticks = 0
        self._nodes: list[Node] = []
        self._links: list[Link] = []
        self._centers: dict[str, Point] = {}
        self._dragging: set[str] = set()
        self._rng = np.random.default_rng(self.settings.seed)

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    @property
    def links(self) -> list[Link]:
        return list(self._links)

    def node(self, node_id: str) -> Node | None:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    # --- Topology ---

    def reseed(self, snapshot: GraphSnapshot, centers: dict[str, Point]) -> None:
        """Adopt a new snapshot without resetting the running simulation.

        Survivors keep position and velocity. New nodes spawn next to their
        link parent (or their cluster center) so they do not fly in from the
        viewport origin. Any topology change reheats the simulation.
        """
        self._centers = dict(centers)
        by_id = {n.id: n for n in snapshot.nodes}
        parents: dict[str, str] = {}
        for link in snapshot.links:
            if link.kind is not LinkKind.CROSS_CLUSTER:
                parents.setdefault(link.target, link.source)

        for node in snapshot.nodes:
            if node.x is None or node.y is None:
                self._spawn(node, by_id.get(parents.get(node.id, "")))

        old_nodes = {n.id for n in self._nodes}
        old_links = {l.id for l in self._links}
        self._nodes = list(snapshot.nodes)
        self._links = [l for l in snapshot.links if l.source in by_id and l.target in by_id]
        self._dragging &= set(by_id)

        if old_nodes != set(by_id) or old_links != {l.id for l in self._links}:
            logger.debug(
                "Layout reseeded: %d nodes, %d links", len(self._nodes), len(self._links)
            )
            self.kick()

    def _spawn(self, node: Node, parent: Node | None) -> None:
        if parent is not None and parent.x is not None and parent.y is not None:
            x, y = parent.x, parent.y
        else:
            center = self._centers.get(node.cluster_id)
            x, y = (center.x, center.y) if center else (self.width / 2, self.height / 2)

        if node.kind is not NodeKind.CENTRAL:
            jitter = self.settings.spawn_jitter
            dx, dy = self._rng.uniform(-jitter, jitter, size=2)
            x, y = x + float(dx), y + float(dy)
        node.x, node.y = x, y
        node.vx = node.vy = 0.0

    def kick(self, alpha: float | None = None) -> None:
        """Reheat the simulation after a topology or viewport change."""
        self.alpha = max(self.alpha, alpha if alpha is not None else self.settings.reheat_alpha)

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        self.kick()

    def set_centers(self, centers: dict[str, Point]) -> None:
        self._centers = dict(centers)
        self.kick()

    # --- Dragging ---

    def pin(self, node_id: str, x: float, y: float) -> None:
        node = self.node(node_id)
        if node is None:
            return
        node.fx, node.fy = x, y
        self._dragging.add(node_id)
        self.alpha_target = self.settings.drag_alpha

    def release(self, node_id: str) -> None:
        node = self.node(node_id)
        if node is not None:
            node.fx = node.fy = None
        self._dragging.discard(node_id)
        if not self._dragging:
            self.alpha_target = self.settings.idle_alpha

    # --- Simulation ---

    def tick(self, iterations: int = 1) -> None:
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.settings.alpha_decay
            self.ticks += 1
            if not self._nodes:
                continue

            for node in self._nodes:
                if node.x is None or node.y is None:
                    self._spawn(node, None)

            pos = np.array([[n.x, n.y] for n in self._nodes], dtype=float)
            vel = np.array([[n.vx, n.vy] for n in self._nodes], dtype=float)

            self._apply_links(pos, vel)
            self._apply_repulsion(pos, vel)
            self._apply_collision(pos, vel)
            self._apply_cohesion(pos, vel)
            self._apply_centering(pos)

            vel *= 1 - self.settings.velocity_decay
            pos += vel
            for i, node in enumerate(self._nodes):
                if node.fx is not None and node.fy is not None:
                    pos[i] = (node.fx, node.fy)
                    vel[i] = 0.0
                node.x, node.y = float(pos[i, 0]), float(pos[i, 1])
                node.vx, node.vy = float(vel[i, 0]), float(vel[i, 1])

    def kinetic_energy(self) -> float:
        return float(sum(n.vx * n.vx + n.vy * n.vy for n in self._nodes))

    def _jiggle(self, shape) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * 1e-6

    def _apply_links(self, pos: np.ndarray, vel: np.ndarray) -> None:
        if not self._links:
            return
        s = self.settings
        index = {n.id: i for i, n in enumerate(self._nodes)}
        src = np.array([index[l.source] for l in self._links])
        tgt = np.array([index[l.target] for l in self._links])
        distance = np.array([
            s.cross_link_distance if l.kind is LinkKind.CROSS_CLUSTER
            else s.example_link_distance if l.kind is LinkKind.EXAMPLE
            else s.link_distance
            for l in self._links
        ])

        count = np.bincount(np.concatenate([src, tgt]), minlength=len(self._nodes))
        bias = count[src] / (count[src] + count[tgt])

        delta = (pos[tgt] + vel[tgt]) - (pos[src] + vel[src])
        zero = ~delta.any(axis=1)
        if zero.any():
            delta[zero] = self._jiggle((int(zero.sum()), 2))
        length = np.hypot(delta[:, 0], delta[:, 1])
        factor = (length - distance) / length * self.alpha * s.link_strength
        delta *= factor[:, None]

        np.add.at(vel, tgt, -delta * bias[:, None])
        np.add.at(vel, src, delta * (1 - bias)[:, None])

    def _apply_repulsion(self, pos: np.ndarray, vel: np.ndarray) -> None:
        n = len(self._nodes)
        if n < 2:
            return
        s = self.settings
        charge = np.array([
            s.central_charge if node.kind is NodeKind.CENTRAL else s.peripheral_charge
            for node in self._nodes
        ])

        diff = pos[None, :, :] - pos[:, None, :]  # diff[i, j] points from i to j
        off_diagonal = ~np.eye(n, dtype=bool)
        coincident = ~diff.any(axis=2) & off_diagonal
        if coincident.any():
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))

        dist2 = np.einsum("ijk,ijk->ij", diff, diff)
        in_range = off_diagonal & (dist2 < s.charge_distance_max ** 2)
        dist2 = np.maximum(dist2, 1.0)
        weight = np.where(in_range, charge[None, :] * self.alpha / dist2, 0.0)
        vel += np.einsum("ij,ijk->ik", weight, diff)

    def _radius(self, node: Node) -> float:
        s = self.settings
        if node.kind is NodeKind.CENTRAL:
            return s.central_radius
        if node.kind is NodeKind.ADD:
            return s.add_radius
        return s.peripheral_radius

    def _apply_collision(self, pos: np.ndarray, vel: np.ndarray) -> None:
        n = len(self._nodes)
        if n < 2:
            return
        radii = np.array([self._radius(node) for node in self._nodes])
        predicted = pos + vel

        i_idx, j_idx = np.triu_indices(n, k=1)
        vec = predicted[i_idx] - predicted[j_idx]
        reach = radii[i_idx] + radii[j_idx]
        dist2 = np.einsum("ij,ij->i", vec, vec)
        hit = dist2 < reach ** 2
        if not hit.any():
            return

        i_idx, j_idx, vec, reach = i_idx[hit], j_idx[hit], vec[hit], reach[hit]
        zero = ~vec.any(axis=1)
        if zero.any():
            vec[zero] = self._jiggle((int(zero.sum()), 2))
        length = np.hypot(vec[:, 0], vec[:, 1])
        vec *= ((reach - length) / length * self.settings.collision_strength)[:, None]

        ri2, rj2 = radii[i_idx] ** 2, radii[j_idx] ** 2
        share = (rj2 / (ri2 + rj2))[:, None]
        np.add.at(vel, i_idx, vec * share)
        np.add.at(vel, j_idx, -vec * (1 - share))

    def _apply_cohesion(self, pos: np.ndarray, vel: np.ndarray) -> None:
        s = self.settings
        for i, node in enumerate(self._nodes):
            center = self._centers.get(node.cluster_id)
            if center is None:
                continue
            k = s.central_cohesion if node.kind is NodeKind.CENTRAL else s.peripheral_cohesion
            vel[i, 0] += (center.x - pos[i, 0]) * k * self.alpha
            vel[i, 1] += (center.y - pos[i, 1]) * k * self.alpha

    def _apply_centering(self, pos: np.ndarray) -> None:
        shift = pos.mean(axis=0) - np.array([self.width / 2, self.height / 2])
        pos -= shift * self.settings.center_strength
