from __future__ import annotations  # Configuration schema for LLM routing

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field


INTERVIEWER_KEY = "interview.interviewer"  # Chat turns and greeting
EVALUATOR_KEY = "interview.evaluator"  # End-of-interview scorecard
REVIEWER_KEY = "interview.reviewer"  # Code submission review

REQUIRED_KEYS = (INTERVIEWER_KEY, EVALUATOR_KEY, REVIEWER_KEY)


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    api_key_env: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_output_tokens: int | None = Field(default=None, ge=1)
    system_role: bool = False


class AppConfig(BaseModel):  # Application configuration root
    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:  # Load configuration from disk
    data = Path(path).read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_route(cfg: AppConfig, key: str) -> LlmRoute:  # Look up the route bound to a registry key
    if key not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{key}'")
    route_id = cfg.registry[key]
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing for '{key}'")
    return cfg.llm_routes[route_id]


def resolve_routes(cfg: AppConfig) -> Dict[str, LlmRoute]:  # Resolve every route the interview core needs
    return {key: resolve_route(cfg, key) for key in REQUIRED_KEYS}


__all__ = [
    "AppConfig",
    "EVALUATOR_KEY",
    "INTERVIEWER_KEY",
    "LlmRoute",
    "REQUIRED_KEYS",
    "REVIEWER_KEY",
    "load_config",
    "resolve_route",
    "resolve_routes",
]
