from __future__ import annotations  # FastAPI server exposing interview sessions

import logging
from pathlib import Path
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from api.schemas import HealthResp, LlmRouteInfo
from config import load_config, settings


logger = logging.getLogger(__name__)

app = FastAPI(title="Mock Interview API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router, prefix=settings.API_PREFIX)


@app.get("/health", response_model=HealthResp)
def health() -> HealthResp:
    return HealthResp(llm_routes=_session_llm_routes())


def _session_llm_routes() -> List[LlmRouteInfo]:  # Collect LLM routes bound in the registry
    try:
        cfg = load_config(Path(settings.CONFIG_PATH))
    except FileNotFoundError:
        return []
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to load LLM config: %s", exc)
        return []
    details: List[LlmRouteInfo] = []
    for module in sorted(cfg.registry.keys()):
        route = cfg.llm_routes.get(cfg.registry[module])
        if not route:
            continue
        details.append(LlmRouteInfo(module=module, route=route.name, model=route.model))
    return details
