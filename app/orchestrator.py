# app/orchestrator.py
from __future__ import annotations

import os
import logging
from typing import Optional

from openai import AsyncOpenAI

from app.config import Settings
from app.schemas import PlanEnvelope, SnapshotPayload
from app.llm import generate_llm_plan
from app.agents.fallback_planner import build_fallback_plan

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

NOTE_NO_CREDENTIAL = "No OPENAI_API_KEY. Returned fallback plan."
NOTE_LLM_PARSE_FAILED = "LLM JSON parse failed. Returned fallback plan."


async def generate_plan(
    payload: SnapshotPayload,
    settings: Settings,
    client: Optional[AsyncOpenAI] = None,
) -> PlanEnvelope:
    """Produce the response envelope for a normalised snapshot.

    The hosted model is tried at most once. Without a credential, or when the
    model's answer can't be turned into a valid plan, the deterministic planner
    fills in and ``note`` explains why.
    """
    constraints = payload.constraints
    logger.info(
        "Planning for group=%s budget=%s with %d vote(s) and %d candidate date(s)",
        constraints.group_size,
        constraints.max_budget_per_person,
        len(payload.votes_summary),
        len(constraints.date_window.all_dates),
    )

    if not settings.has_llm_credential:
        logger.info("No LLM credential configured; using fallback planner")
        return PlanEnvelope(
            success=True,
            data=build_fallback_plan(payload),
            from_llm=False,
            note=NOTE_NO_CREDENTIAL,
        )

    plan = await generate_llm_plan(payload, settings, client=client)
    if plan is None:
        logger.info("LLM plan unusable; using fallback planner")
        return PlanEnvelope(
            success=True,
            data=build_fallback_plan(payload),
            from_llm=False,
            note=NOTE_LLM_PARSE_FAILED,
        )

    return PlanEnvelope(success=True, data=plan, from_llm=True)
