"""Configuration package for the interview service."""
from .app_config import (
    EVALUATOR_KEY,
    INTERVIEWER_KEY,
    REVIEWER_KEY,
    AppConfig,
    LlmRoute,
    load_config,
    resolve_route,
    resolve_routes,
)
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "EVALUATOR_KEY",
    "INTERVIEWER_KEY",
    "LlmRoute",
    "REVIEWER_KEY",
    "load_config",
    "resolve_route",
    "resolve_routes",
    "Settings",
    "settings",
]
