"""Tests for the terminal explorer commands."""

import os
from unittest.mock import patch

import pytest

from wordsplainer.cli import handle_command, main, render
from wordsplainer.config import ExplorerSettings, LayoutSettings, load_preferences
from wordsplainer.graph.controller import InteractionController
from wordsplainer.models.content_models import Register, RelationType
from wordsplainer.services.content import StaticContentService


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def controller() -> InteractionController:
    settings = ExplorerSettings(layout=LayoutSettings(seed=5))
    return InteractionController(StaticContentService(), settings=settings)


@pytest.mark.anyio
async def test_word_then_view_then_more(controller, tmp_path):
    prefs = tmp_path / "prefs.json"
    assert await handle_command(controller, "plan", prefs) is True
    assert await handle_command(controller, ":view synonyms", prefs) is True
    assert await handle_command(controller, ":more", prefs) is True

    cluster = controller.model.get_cluster("plan")
    assert cluster.active_view is RelationType.SYNONYMS
    assert controller.view_state.has_more is False
    lines = render(controller)
    assert lines[0] == "* plan (synonyms)"
    assert any("intention" in line for line in lines)


@pytest.mark.anyio
async def test_click_by_number_expands(controller, tmp_path):
    await handle_command(controller, "plan", tmp_path / "p.json")
    await handle_command(controller, ":click 2", tmp_path / "p.json")
    meaning = controller.model.get_cluster("plan").nodes[1]
    assert controller.model.is_expanded(meaning.id)


@pytest.mark.anyio
async def test_drag_detaches(controller, tmp_path):
    await handle_command(controller, "plan", tmp_path / "p.json")
    await handle_command(controller, ":view synonyms", tmp_path / "p.json")
    await handle_command(controller, ":drag 2 300 0", tmp_path / "p.json")
    assert controller.model.get_cluster("scheme") is not None


@pytest.mark.anyio
async def test_register_toggle_is_persisted(controller, tmp_path):
    prefs = tmp_path / "prefs.json"
    await handle_command(controller, ":register", prefs)
    assert controller.register is Register.ACADEMIC
    assert load_preferences(prefs).register is Register.ACADEMIC


@pytest.mark.anyio
async def test_quit_and_unknown(controller, tmp_path, capsys):
    assert await handle_command(controller, ":bogus", tmp_path / "p.json") is True
    assert "Unknown command" in capsys.readouterr().out
    assert await handle_command(controller, ":quit", tmp_path / "p.json") is False


@pytest.mark.anyio
async def test_click_word_of_node_explores_it(controller, tmp_path, capsys):
    await handle_command(controller, "plan", tmp_path / "p.json")
    await handle_command(controller, ":click 2 nonsense", tmp_path / "p.json")
    assert "not a clickable word of node 2" in capsys.readouterr().out
    assert [c.id for c in controller.model.clusters] == ["plan"]

    await handle_command(controller, ":click 2 detailed", tmp_path / "p.json")
    assert controller.model.active_cluster_id == "detailed"
    assert render(controller)[0] == "  plan (meaning)"


def test_serve_subcommand_runs_uvicorn():
    with patch.dict(os.environ, {"WORDSPLAINER_MOCK": ""}), patch("uvicorn.run") as run:
        main(["serve", "--port", "9000", "--mock"])
        assert os.environ["WORDSPLAINER_MOCK"] == "true"

    from wordsplainer.main import app

    run.assert_called_once_with(app, host="127.0.0.1", port=9000, log_level="info")
