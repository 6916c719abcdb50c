"""Interaction state machine for the word graph.

User gestures arrive as event models and go through ``dispatch``. Each
handler may call the content service (the only suspension point), then
mutates the GraphModel and re-seeds the layout. Concurrent completions are
tolerated rather than sequenced:

- load-more pages rely on id-based dedup in ``GraphModel.append_view_nodes``
- first pages (submit / switch view) carry a per-cluster request token and
  are dropped, success or failure, when a newer first-page request was issued
  meanwhile or the cluster was cleared and recreated
- example fetches rely on ``attach_expansion`` being a no-op when an
  example is already shown
"""

from __future__ import annotations

import logging
import math
import re
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, Field, ValidationError

from wordsplainer.config import ExplorerSettings
from wordsplainer.errors import MalformedResponse, NotDetachable, ServiceUnavailable
from wordsplainer.graph.layout import ClusterLayoutEngine
from wordsplainer.graph.model import GraphModel
from wordsplainer.models.content_models import (
    ContentRequest,
    ExampleRequest,
    Language,
    Register,
    RelationType,
)
from wordsplainer.models.graph_models import Cluster, ExpansionState, Node, NodeKind, ViewState
from wordsplainer.services.content.base import BaseContentService

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLICKABLE_WORD = re.compile(r"^[a-zA-Z]+$")


# --- Events ---


class SubmitWord(BaseModel):
    word: str
    view: RelationType | None = None
    language: Language | None = None


class SwitchView(BaseModel):
    view: RelationType
    language: Language | None = None


class LoadMore(BaseModel):
    cluster_id: str | None = None  # None = active cluster


class NodeClicked(BaseModel):
    node_id: str


class WordClicked(BaseModel):
    """A single word inside a peripheral node's text was clicked."""

    node_id: str
    word: str


class DragStarted(BaseModel):
    node_id: str
    x: float
    y: float


class Dragged(BaseModel):
    node_id: str
    x: float
    y: float


class DragEnded(BaseModel):
    node_id: str
    x: float
    y: float


class ClearGraph(BaseModel):
    pass


class Resize(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class ToggleRegister(BaseModel):
    pass


class Hover(BaseModel):
    node_id: str


Event = (
    SubmitWord | SwitchView | LoadMore | NodeClicked | WordClicked | DragStarted
    | Dragged | DragEnded | ClearGraph | Resize | ToggleRegister | Hover
)


class Outcome(str, Enum):
    APPLIED = "applied"
    FOCUSED = "focused"  # existing cluster re-activated, nothing fetched
    COLLAPSED = "collapsed"
    DETACHED = "detached"
    IGNORED = "ignored"  # gesture not valid in the current state
    STALE = "stale"  # response arrived after the graph moved on
    FAILED = "failed"


class StatusKind(str, Enum):
    EMPTY = "empty"
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


class Status(BaseModel):
    kind: StatusKind
    message: str = ""


class Notice(BaseModel):
    message: str
    expires_at: float


EMPTY_STATUS = Status(kind=StatusKind.EMPTY, message="Add a word to explore")


class InteractionController:
    def __init__(
        self,
        content: BaseContentService,
        settings: ExplorerSettings | None = None,
        model: GraphModel | None = None,
        layout: ClusterLayoutEngine | None = None,
        register: Register = Register.CONVERSATIONAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or ExplorerSettings()
        self.content = content
        self.model = model or GraphModel(
            self.settings.viewport_width,
            self.settings.viewport_height,
            self.settings.layout,
        )
        self.layout = layout or ClusterLayoutEngine(
            self.settings.layout, self.model.width, self.model.height
        )
        self.register = register
        self.status = EMPTY_STATUS
        self.tooltip: str | None = None
        self._clock = clock
        self._notices: list[Notice] = []
        self._request_tokens: dict[str, int] = {}
        self._in_flight: dict[str, int] = {}
        self._drag_origins: dict[str, tuple[float, float]] = {}

        self._handlers: dict[type, Callable[..., Awaitable[Outcome]]] = {
            SubmitWord: self._submit_word,
            SwitchView: self._switch_view,
            LoadMore: self._load_more,
            NodeClicked: self._node_clicked,
            WordClicked: self._word_clicked,
            DragStarted: self._drag_started,
            Dragged: self._dragged,
            DragEnded: self._drag_ended,
            ClearGraph: self._clear_graph,
            Resize: self._resize,
            ToggleRegister: self._toggle_register,
            Hover: self._hover,
        }
        self._click_handlers: dict[NodeKind, Callable[[Node], Awaitable[Outcome]]] = {
            NodeKind.CENTRAL: self._click_central,
            NodeKind.ADD: self._click_add,
            NodeKind.EXAMPLE: self._click_example,
            **{kind: self._toggle_expansion for kind in NodeKind if kind.is_relation},
        }
        missing = set(NodeKind) - set(self._click_handlers)
        if missing:
            raise TypeError(f"No click handling for node kinds: {sorted(k.value for k in missing)}")

    async def dispatch(self, event: Event) -> Outcome:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unhandled event type {type(event).__name__}")
        return await handler(event)

    # --- Read API for renderers ---

    @property
    def view_state(self) -> ViewState:
        """Pagination of the active cluster's view, always derived from the model."""
        cluster = self.model.active_cluster
        if cluster is None:
            return ViewState()
        cursor = cluster.pagination_cursor
        return ViewState(offset=cursor.offset, has_more=cursor.has_more, total=cursor.total)

    def notices(self) -> list[str]:
        """Transient notices that have not yet expired."""
        now = self._clock()
        self._notices = [n for n in self._notices if n.expires_at > now]
        return [n.message for n in self._notices]

    def is_fetching(self, cluster_id: str) -> bool:
        return self._in_flight.get(cluster_id, 0) > 0

    def clickable_words(self, node: Node) -> list[str]:
        """Purely alphabetic tokens of a peripheral node's text, in order."""
        if node.kind in (NodeKind.CENTRAL, NodeKind.ADD):
            return []
        return [token for token in node.text.split() if _CLICKABLE_WORD.match(token)]

    def tooltip_for(self, node: Node) -> str:
        cluster = self.model.get_cluster(node.cluster_id)
        if node.kind is NodeKind.CENTRAL:
            view = cluster.active_view.value if cluster else ""
            return f"Exploring: {view} • Click to focus"
        if node.kind is NodeKind.ADD:
            if cluster is None or not cluster.pagination_cursor.has_more:
                return "No more items"
            return f"Load more {cluster.active_view.value}"
        if node.kind is NodeKind.EXAMPLE:
            return node.translation or node.explanation or ""
        return "Click for an example\nDrag away to explore"

    # --- Helpers ---

    def _notify(self, message: str) -> None:
        logger.info("Notice: %s", message)
        self._notices.append(Notice(message=message, expires_at=self._clock() + self.settings.notice_ttl))

    def _refresh_layout(self) -> None:
        self.layout.reseed(self.model.snapshot(), self.model.centers())

    def _first_page_limit(self, view: RelationType) -> int:
        if view is RelationType.MEANING:
            return self.settings.meaning_limit
        return self.settings.page_size

    def _content_request(
        self,
        word: str,
        view: RelationType,
        offset: int,
        limit: int,
        language: Language | None,
    ) -> ContentRequest:
        return ContentRequest(
            word=word,
            type=view,
            offset=offset,
            limit=limit,
            language=language,
            register=self.register,
        )

    async def _tracked(self, cluster_id: str, call: Awaitable[T]) -> T:
        self._in_flight[cluster_id] = self._in_flight.get(cluster_id, 0) + 1
        try:
            return await call
        finally:
            self._in_flight[cluster_id] -= 1

    def _resolve_language(self, view: RelationType, language: Language | None) -> Language | None:
        if view is not RelationType.TRANSLATION:
            return None
        return language or self.settings.default_language

    # --- Submit / switch view ---

    async def _submit_word(self, event: SubmitWord) -> Outcome:
        word = " ".join(event.word.split())
        if not word:
            return Outcome.IGNORED

        existing = self.model.cluster_for_word(word)
        if existing is not None:
            self.model.set_active(existing.id)
            self.status = Status(kind=StatusKind.IDLE)
            return Outcome.FOCUSED

        view = event.view or RelationType.MEANING
        language = self._resolve_language(view, event.language)
        try:
            req = self._content_request(word, view, 0, self._first_page_limit(view), language)
        except ValidationError:
            self.status = Status(kind=StatusKind.ERROR, message=f'Error: "{word}" is not a word that can be explored')
            return Outcome.FAILED

        cluster = self.model.create_cluster(word)
        self.model.set_active(cluster.id)
        self._refresh_layout()
        return await self._load_first_page(cluster.id, req)

    async def _switch_view(self, event: SwitchView) -> Outcome:
        cluster = self.model.active_cluster
        if cluster is None:
            self._notify("Please add a word first.")
            return Outcome.IGNORED

        language = self._resolve_language(event.view, event.language or cluster.language)
        loaded = self.model.find_node(cluster.add_id) is not None
        if loaded and event.view is cluster.active_view and language == cluster.language:
            return Outcome.IGNORED

        req = self._content_request(
            cluster.word, event.view, 0, self._first_page_limit(event.view), language
        )
        return await self._load_first_page(cluster.id, req)

    def _is_current(self, cluster_id: str, token: int, cluster: Cluster | None) -> bool:
        """Whether a first-page request is still the latest for the same cluster object."""
        return self._request_tokens.get(cluster_id) == token and self.model.get_cluster(cluster_id) is cluster

    async def _load_first_page(self, cluster_id: str, req: ContentRequest) -> Outcome:
        cluster = self.model.get_cluster(cluster_id)
        token = self._request_tokens.get(cluster_id, 0) + 1
        self._request_tokens[cluster_id] = token
        self.status = Status(kind=StatusKind.LOADING, message=f'Loading {req.type.value} for "{req.word}"...')

        try:
            resp = await self._tracked(cluster_id, self.content.fetch_relations(req))
        except ServiceUnavailable as exc:
            if not self._is_current(cluster_id, token, cluster):
                logger.info("Discarded stale %s failure for %r", req.type.value, req.word)
                return Outcome.STALE
            logger.warning("First page of %s for %r failed: %s", req.type.value, req.word, exc.message)
            self.status = Status(kind=StatusKind.ERROR, message=f"Error: {exc.message}")
            return Outcome.FAILED

        if not self._is_current(cluster_id, token, cluster):
            logger.info("Discarded stale %s page for %r", req.type.value, req.word)
            return Outcome.STALE

        self.model.replace_view_nodes(cluster_id, req.type, resp, req.language)
        self.status = Status(kind=StatusKind.IDLE)
        self._refresh_layout()
        return Outcome.APPLIED

    # --- Pagination ---

    async def _load_more(self, event: LoadMore) -> Outcome:
        cluster_id = event.cluster_id or self.model.active_cluster_id
        cluster = self.model.get_cluster(cluster_id) if cluster_id else None
        if cluster is None:
            return Outcome.IGNORED

        cursor = cluster.pagination_cursor
        if not cursor.has_more:
            return Outcome.IGNORED

        view = cluster.active_view
        req = self._content_request(
            cluster.word, view, cursor.offset, self.settings.load_more_limit, cluster.language
        )
        try:
            resp = await self._tracked(cluster.id, self.content.fetch_relations(req))
        except ServiceUnavailable as exc:
            self._notify(f"Could not load more {view.value}: {exc.message}")
            return Outcome.FAILED

        # Items of a view the cluster has since left must not leak into the new one
        if self.model.get_cluster(cluster.id) is not cluster or cluster.active_view is not view:
            logger.info("Discarded stale %s page for %r", view.value, cluster.word)
            return Outcome.STALE

        if not resp.nodes:
            self.model.mark_exhausted(cluster.id)
            return Outcome.APPLIED

        self.model.append_view_nodes(cluster.id, resp)
        self._refresh_layout()
        return Outcome.APPLIED

    # --- Clicks ---

    async def _node_clicked(self, event: NodeClicked) -> Outcome:
        node = self.model.find_node(event.node_id)
        if node is None:
            return Outcome.IGNORED
        return await self._click_handlers[node.kind](node)

    async def _word_clicked(self, event: WordClicked) -> Outcome:
        node = self.model.find_node(event.node_id)
        word = event.word.strip()
        if node is None or word not in self.clickable_words(node):
            return Outcome.IGNORED
        return await self._submit_word(SubmitWord(word=word, view=RelationType.MEANING))

    async def _click_central(self, node: Node) -> Outcome:
        self.model.set_active(node.cluster_id)
        return Outcome.FOCUSED

    async def _click_add(self, node: Node) -> Outcome:
        self.model.set_active(node.cluster_id)
        return await self._load_more(LoadMore(cluster_id=node.cluster_id))

    async def _click_example(self, node: Node) -> Outcome:
        return Outcome.IGNORED

    async def _toggle_expansion(self, node: Node) -> Outcome:
        if self.model.toggle_expansion(node.id) is ExpansionState.COLLAPSED:
            self._refresh_layout()
            return Outcome.COLLAPSED

        cluster = self.model.get_cluster(node.cluster_id)
        req = ExampleRequest(
            word=cluster.word,
            text=node.text[:500],
            type=node.kind.relation,
            language=node.language,
            register=self.register,
        )
        try:
            example = await self._tracked(cluster.id, self.content.fetch_example(req))
            example_node = self.model.build_example_node(node.id, example)
        except KeyError:
            return Outcome.STALE
        except (ServiceUnavailable, MalformedResponse) as exc:
            self.model.cancel_expansion(node.id)
            self._notify(f"Could not load an example: {getattr(exc, 'message', str(exc))}")
            return Outcome.FAILED

        if not self.model.attach_expansion(node.id, example_node):
            return Outcome.STALE
        self._refresh_layout()
        return Outcome.APPLIED

    # --- Dragging ---

    async def _drag_started(self, event: DragStarted) -> Outcome:
        if self.model.find_node(event.node_id) is None:
            return Outcome.IGNORED
        self._drag_origins[event.node_id] = (event.x, event.y)
        self.layout.pin(event.node_id, event.x, event.y)
        return Outcome.APPLIED

    async def _dragged(self, event: Dragged) -> Outcome:
        if event.node_id not in self._drag_origins:
            return Outcome.IGNORED
        self.layout.pin(event.node_id, event.x, event.y)
        return Outcome.APPLIED

    async def _drag_ended(self, event: DragEnded) -> Outcome:
        origin = self._drag_origins.pop(event.node_id, None)
        if origin is None:
            return Outcome.IGNORED
        self.layout.release(event.node_id)

        node = self.model.find_node(event.node_id)
        if node is None:
            return Outcome.IGNORED
        displacement = math.hypot(event.x - origin[0], event.y - origin[1])
        if displacement <= self.settings.snap_off_threshold or node.is_central:
            return Outcome.APPLIED

        return await self._snap_off(node)

    async def _snap_off(self, node: Node) -> Outcome:
        """Promote a dragged-away node into a cluster of its own."""
        try:
            self._content_request(node.text, RelationType.MEANING, 0, 1, None)
        except ValidationError:
            if node.text:
                self._notify(f'"{node.text[:40]}" cannot be explored on its own')
            return Outcome.IGNORED

        try:
            text = self.model.detach_node(node.id)
        except NotDetachable:
            logger.info("Ignored snap-off of %r", node.id)
            return Outcome.IGNORED
        self._refresh_layout()

        outcome = await self._submit_word(SubmitWord(word=text))
        return Outcome.FAILED if outcome is Outcome.FAILED else Outcome.DETACHED

    # --- Misc ---

    async def _clear_graph(self, event: ClearGraph) -> Outcome:
        self.model.clear_all()
        self._request_tokens.clear()
        self._drag_origins.clear()
        self._notices.clear()
        self.status = EMPTY_STATUS
        self.tooltip = None
        self._refresh_layout()
        return Outcome.APPLIED

    async def _resize(self, event: Resize) -> Outcome:
        self.model.set_viewport(event.width, event.height)
        self.layout.resize(event.width, event.height)
        self.layout.set_centers(self.model.centers())
        return Outcome.APPLIED

    async def _toggle_register(self, event: ToggleRegister) -> Outcome:
        if self.register is Register.CONVERSATIONAL:
            self.register = Register.ACADEMIC
        else:
            self.register = Register.CONVERSATIONAL
        logger.info("Register is now %s", self.register.value)
        return Outcome.APPLIED

    async def _hover(self, event: Hover) -> Outcome:
        node = self.model.find_node(event.node_id)
        self.tooltip = self.tooltip_for(node) if node is not None else None
        return Outcome.APPLIED
