# app/llm.py
import os
import re
import json
import logging
from typing import Any, Iterable, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from app.config import Settings
from app.schemas import Plan, SnapshotPayload

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

SYSTEM_INSTRUCTION = """You are a professional Thai travel planner AI. You must respond ONLY with valid JSON matching this exact TypeScript type:

type Plan = {
  title: string;
  dates: string | null;
  participants: number | null;
  totalBudget: number | null;
  overview: {
    destinations: string[];
    accommodation?: string;
    transportation?: string;
    totalDistance?: string;
  };
  itinerary: {
    day: string;
    label: string;
    items: {
      time: string;
      name: string;
      type: "travel" | "meal" | "attraction" | "checkin" | "checkout" | "shopping";
      location?: string;
      estCost?: number;
      duration?: string;
    }[]
  }[];
  budgetBreakdown: {
    transportation: number;
    accommodation: number;
    attractions: number;
    meals: number;
    shopping: number;
    miscellaneous: number;
  };
  tips: string[];
};

Rules:
- Return ONLY the JSON object, no markdown, no explanation
- All text in Thai language
- Create realistic, detailed itinerary based on the snapshot data
- Prioritize top-voted places in the itinerary
- Budget should match constraints (max budget per person × group size)"""

USER_TEMPLATE = """สร้างแผนการท่องเที่ยวแบบละเอียดจากข้อมูล snapshot ต่อไปนี้:

ข้อมูลกลุ่ม:
- จำนวนคน: {group_size} คน
- งบประมาณต่อคน (ขั้นต่ำ): {budget} บาท
- สไตล์การเที่ยว: {styles}
- จังหวัดที่นิยม: {provinces}
- ช่วงวันที่เป็นไปได้: {dates}

สถานที่ที่ได้คะแนนโหวตสูงสุด (จัดตามลำดับ):
{votes}

ข้อกำหนด:
1. สร้างแผนที่สมเหตุสมผลตามข้อมูลที่ให้มา
2. ใช้สถานที่ที่ได้คะแนนโหวตสูงเป็นหลัก
3. ระบุเวลา ระยะเวลา และค่าใช้จ่ายโดยประมาณ
4. งบประมาณรวมต้องไม่เกิน {budget_cap} × {group_cap} บาท
5. กิจกรรมต้องเรียงลำดับที่สมเหตุสมผล
6. ตอบกลับเป็น JSON object เท่านั้น ห้ามมีข้อความอธิบายเพิ่มเติม"""

UNSPECIFIED = "ไม่ระบุ"

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```\s*$")


def build_user_prompt(payload: SnapshotPayload) -> str:
    constraints = payload.constraints
    group_size = constraints.group_size
    budget = constraints.max_budget_per_person
    votes = [vote.model_dump(exclude_none=True) for vote in payload.votes_summary]
    return USER_TEMPLATE.format(
        group_size=group_size if group_size is not None else UNSPECIFIED,
        budget=budget if budget is not None else UNSPECIFIED,
        styles=_json_list(constraints.travel_styles),
        provinces=_json_list(constraints.preferred_provinces),
        dates=_json_list(constraints.date_window.all_dates),
        votes=json.dumps(votes, ensure_ascii=False, indent=2),
        budget_cap=budget if budget is not None else 10000,
        group_cap=group_size if group_size is not None else 2,
    )


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` wrapper, if the model added one."""
    cleaned = (text or "").strip()
    if "```" in cleaned:
        cleaned = _LEADING_FENCE.sub("", cleaned)
        cleaned = _TRAILING_FENCE.sub("", cleaned).strip()
    return cleaned


def parse_plan(text: str) -> Optional[Plan]:
    """Parse model output into a :class:`Plan`; ``None`` when it is not usable."""
    cleaned = strip_code_fence(text)
    try:
        raw: Any = json.loads(cleaned)
    except ValueError:
        logger.warning("LLM response was not valid JSON (%d chars)", len(cleaned))
        return None

    try:
        plan = Plan.model_validate(raw)
    except ValidationError as exc:
        logger.warning("LLM JSON did not match the plan schema: %d error(s)", exc.error_count())
        return None
    logger.info("LLM plan parsed successfully with %d day(s)", len(plan.itinerary))
    return plan


async def generate_llm_plan(
    payload: SnapshotPayload,
    settings: Settings,
    client: Optional[AsyncOpenAI] = None,
) -> Optional[Plan]:
    """Ask the hosted model for a plan. Returns ``None`` when the caller should fall back.

    A passed-in ``client`` is left open; otherwise one is created for this call
    and closed before returning.
    """
    if client is not None:
        return await _request_plan(client, payload, settings)
    async with AsyncOpenAI(api_key=settings.openai_api_key) as owned_client:
        return await _request_plan(owned_client, payload, settings)


async def _request_plan(client: AsyncOpenAI, payload: SnapshotPayload, settings: Settings) -> Optional[Plan]:
    user_prompt = build_user_prompt(payload)
    logger.info(
        "Invoking LLM model %s with %d ranked votes", settings.model, len(payload.votes_summary)
    )
    try:
        resp = await client.chat.completions.create(
            model=settings.model,
            messages=[
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.2,
            response_format={"type": "json_object"},
        )
        raw = resp.choices[0].message.content or ""
    except Exception:
        logger.warning("LLM call failed; falling back to deterministic plan", exc_info=True)
        return None

    return parse_plan(raw)


def _json_list(values: Iterable[str]) -> str:
    return json.dumps(list(values), ensure_ascii=False)
