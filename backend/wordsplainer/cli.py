"""Command-line entry point.

Usage:
    wordsplainer serve --port 8888 [--mock]
    wordsplainer explore [--api-url http://localhost:8888 | --mock]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shlex
from pathlib import Path

from wordsplainer.config import (
    PREFERENCES_PATH,
    ExplorerSettings,
    load_preferences,
    save_preferences,
)
from wordsplainer.graph.controller import (
    ClearGraph,
    DragEnded,
    DragStarted,
    InteractionController,
    LoadMore,
    NodeClicked,
    Outcome,
    SubmitWord,
    SwitchView,
    ToggleRegister,
    WordClicked,
)
from wordsplainer.models.content_models import Language, RelationType
from wordsplainer.models.graph_models import NodeKind
from wordsplainer.services.content import (
    BaseContentService,
    HttpContentService,
    StaticContentService,
)

logger = logging.getLogger(__name__)

# Simulation steps run between commands so positions settle before printing
TICKS_PER_COMMAND = 60

HELP = """\
Commands:
  <word>                  explore a word (or focus its cluster)
  :view <type> [lang]     switch the active cluster's view
  :more                   load more items for the active cluster
  :click <n> [word]       click node n (expand/collapse, load more, focus),
                          or one word of its text to explore that word
  :drag <n> <dx> <dy>     drag node n by (dx, dy); far enough detaches it
  :register               toggle conversational/academic register
  :clear                  remove every cluster
  :help                   show this help
  :quit                   leave
"""


def render(controller: InteractionController) -> list[str]:
    """Text rendering of the graph: one numbered line per node."""
    lines: list[str] = []
    numbered = []
    for cluster in controller.model.clusters:
        marker = "*" if cluster.id == controller.model.active_cluster_id else " "
        language = f" [{cluster.language.value}]" if cluster.language else ""
        lines.append(f"{marker} {cluster.word} ({cluster.active_view.value}{language})")
        for node in cluster.nodes:
            numbered.append(node.id)
            pos = ""
            if node.x is not None and node.y is not None:
                pos = f"  @({node.x:.0f}, {node.y:.0f})"
            indent = "      " if node.kind is NodeKind.EXAMPLE else "    "
            label = "+" if node.kind is NodeKind.ADD else node.text
            if node.kind is NodeKind.EXAMPLE and node.translation:
                label = f"{node.text} / {node.translation}"
            lines.append(f"{indent}{len(numbered):>3}. {label}{pos}")
    for link in controller.model.cross_links:
        lines.append(f"  ~ {link.source} <-> {link.target}")

    view = controller.view_state
    lines.append(f"[{controller.status.kind.value}] {controller.status.message}".rstrip())
    lines.append(
        f"register={controller.register.value} offset={view.offset} "
        f"has_more={view.has_more} total={view.total}"
    )
    for notice in controller.notices():
        lines.append(f"! {notice}")
    return lines


def _node_by_number(controller: InteractionController, number: str) -> str | None:
    ids = [node.id for cluster in controller.model.clusters for node in cluster.nodes]
    try:
        index = int(number) - 1
    except ValueError:
        return None
    if 0 <= index < len(ids):
        return ids[index]
    return None


async def handle_command(
    controller: InteractionController, line: str, prefs_path: Path = PREFERENCES_PATH
) -> bool:
    """Run one REPL command. Returns False when the user asked to quit."""
    line = line.strip()
    if not line:
        return True
    if not line.startswith(":"):
        await controller.dispatch(SubmitWord(word=line))
        return True

    parts = shlex.split(line[1:])
    command, args = parts[0].lower() if parts else "", parts[1:]

    if command in ("quit", "q", "exit"):
        return False
    if command == "help":
        print(HELP)
    elif command == "view" and args:
        try:
            view = RelationType(args[0].lower())
            language = Language(args[1].lower()) if len(args) > 1 else None
        except ValueError:
            print(f"Unknown view or language: {' '.join(args)}")
            return True
        await controller.dispatch(SwitchView(view=view, language=language))
    elif command == "more":
        await controller.dispatch(LoadMore())
    elif command == "click" and args:
        node_id = _node_by_number(controller, args[0])
        if node_id is None:
            print(f"No node {args[0]}")
            return True
        if len(args) > 1:
            outcome = await controller.dispatch(WordClicked(node_id=node_id, word=args[1]))
            if outcome is Outcome.IGNORED:
                print(f"\"{args[1]}\" is not a clickable word of node {args[0]}")
        else:
            await controller.dispatch(NodeClicked(node_id=node_id))
    elif command == "drag" and len(args) == 3:
        node_id = _node_by_number(controller, args[0])
        node = controller.model.find_node(node_id) if node_id else None
        if node is None:
            print(f"No node {args[0]}")
            return True
        x0, y0 = node.x or 0.0, node.y or 0.0
        try:
            dx, dy = float(args[1]), float(args[2])
        except ValueError:
            print("Drag offsets must be numbers")
            return True
        await controller.dispatch(DragStarted(node_id=node_id, x=x0, y=y0))
        outcome = await controller.dispatch(DragEnded(node_id=node_id, x=x0 + dx, y=y0 + dy))
        if outcome is Outcome.DETACHED:
            print(f'Detached "{node.text}" into its own cluster')
    elif command == "register":
        await controller.dispatch(ToggleRegister())
        prefs = load_preferences(prefs_path)
        prefs.register = controller.register
        try:
            save_preferences(prefs, prefs_path)
        except OSError:
            logger.warning("Could not save preferences to %s", prefs_path)
    elif command == "clear":
        await controller.dispatch(ClearGraph())
    else:
        print(f"Unknown command: {line}  (try :help)")
    return True


async def explore(service: BaseContentService, prefs_path: Path = PREFERENCES_PATH) -> None:
    prefs = load_preferences(prefs_path)
    controller = InteractionController(service, settings=ExplorerSettings(), register=prefs.register)
    print(HELP)
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "wordsplainer> ")
            except EOFError:
                break
            if not await handle_command(controller, line, prefs_path):
                break
            controller.layout.tick(TICKS_PER_COMMAND)
            print("\n".join(render(controller)))
    finally:
        await service.aclose()


def serve(host: str, port: int, mock: bool) -> None:
    if mock:
        os.environ["WORDSPLAINER_MOCK"] = "true"

    import uvicorn

    from wordsplainer.main import app

    uvicorn.run(app, host=host, port=port, log_level="info")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="wordsplainer", description="Wordsplainer vocabulary explorer")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_parser = sub.add_parser("serve", help="Run the content API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind to")
    serve_parser.add_argument("--port", type=int, default=8888, help="Port to bind to")
    serve_parser.add_argument("--mock", action="store_true", help="Serve built-in mock data")

    explore_parser = sub.add_parser("explore", help="Explore words in the terminal")
    explore_parser.add_argument("--api-url", default="http://localhost:8888", help="Content API base URL")
    explore_parser.add_argument("--mock", action="store_true", help="Use built-in mock data, no server")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        serve(args.host, args.port, args.mock)
    else:
        service = StaticContentService() if args.mock else HttpContentService(base_url=args.api_url)
        asyncio.run(explore(service))


if __name__ == "__main__":
    main()
