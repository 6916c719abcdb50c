"""Runtime configuration: environment-driven service config, explorer tunables,
and the persisted display preference."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

from wordsplainer.models.content_models import Language, Register
from wordsplainer.models.llm_models import LLMConfig, LLMProviderType

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "google/gemma-3-12b-it:free"
DEFAULT_FALLBACK_MODEL = "openai/gpt-4o-mini"

PREFERENCES_PATH = Path.home() / ".wordsplainer.json"


class LayoutSettings(BaseModel):
    """Force simulation constants."""

    link_distance: float = 150.0
    cross_link_distance: float = 320.0
    example_link_distance: float = 110.0
    link_strength: float = 0.7
    central_charge: float = -1500.0
    peripheral_charge: float = -400.0
    charge_distance_max: float = 500.0
    central_radius: float = 60.0
    peripheral_radius: float = 45.0
    add_radius: float = 25.0
    collision_strength: float = 0.9
    central_cohesion: float = 0.5
    peripheral_cohesion: float = 0.2
    center_strength: float = 0.1
    velocity_decay: float = 0.4
    alpha_min: float = 0.001
    alpha_decay: float = 0.0228  # 1 - alpha_min ** (1 / 300)
    idle_alpha: float = 0.005
    drag_alpha: float = 0.3
    reheat_alpha: float = 0.5
    cluster_ring_radius: float = 450.0
    spawn_jitter: float = 50.0
    seed: int | None = None


class ExplorerSettings(BaseModel):
    """Client-side interaction tunables."""

    meaning_limit: int = Field(default=1, gt=0)
    page_size: int = Field(default=5, gt=0)
    load_more_limit: int = Field(default=3, gt=0)
    snap_off_threshold: float = 120.0
    notice_ttl: float = 4.0
    default_language: Language = Language.SPANISH
    viewport_width: float = 1200.0
    viewport_height: float = 800.0
    layout: LayoutSettings = Field(default_factory=LayoutSettings)


def llm_config_from_env() -> LLMConfig:
    """Build the server-side LLMConfig from environment variables."""
    provider_str = os.environ.get("WORDSPLAINER_LLM_PROVIDER", "openrouter")
    try:
        provider = LLMProviderType(provider_str)
    except ValueError:
        logger.warning("Unknown LLM provider %r, using openrouter", provider_str)
        provider = LLMProviderType.OPENROUTER

    return LLMConfig(
        provider=provider,
        api_key=os.environ.get("WORDSPLAINER_LLM_API_KEY") or os.environ.get("OPENROUTER_API_KEY"),
        base_url=os.environ.get("WORDSPLAINER_LLM_BASE_URL"),
        model=os.environ.get("WORDSPLAINER_LLM_MODEL", DEFAULT_MODEL),
        fallback_model=os.environ.get("WORDSPLAINER_FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL) or None,
    )


def mock_mode_enabled() -> bool:
    return os.environ.get("WORDSPLAINER_MOCK", "").lower() == "true"


def cors_origins_from_env() -> list[str]:
    # Comma-separated, default to localhost dev server
    env = os.environ.get("CORS_ORIGINS", "http://localhost:8888")
    return [o.strip() for o in env.split(",") if o.strip()]


# --- Display preference ---


class Preferences(BaseModel):
    register: Register = Register.CONVERSATIONAL


def load_preferences(path: Path = PREFERENCES_PATH) -> Preferences:
    """Load the stored display preference; a missing or broken file yields defaults."""
    try:
        return Preferences.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except FileNotFoundError:
        return Preferences()
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable preferences file %s", path)
        return Preferences()


def save_preferences(prefs: Preferences, path: Path = PREFERENCES_PATH) -> None:
    path.write_text(prefs.model_dump_json(), encoding="utf-8")
