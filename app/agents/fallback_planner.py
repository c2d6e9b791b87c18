"""Deterministic two-day plan used when the hosted model is unavailable."""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Union

from app.schemas import (
    BudgetBreakdown,
    Plan,
    PlanDay,
    PlanItem,
    PlanOverview,
    SnapshotPayload,
    VoteSummary,
)

Number = Union[int, float]

DEFAULT_GROUP_SIZE = 2
DEFAULT_BUDGET_PER_PERSON = 10000
PLACEHOLDER_DATES = ("2025-11-01", "2025-11-02")
PLACEHOLDER_NAMES = ("สถานที่ท่องเที่ยว A", "สถานที่ท่องเที่ยว B", "สถานที่ท่องเที่ยว C")
PLACEHOLDER_COSTS = (200, 150, 100)  # per person, by vote slot
UNKNOWN_LOCATION = "ไม่ระบุ"
DEFAULT_DURATION = "2 ชั่วโมง"

BUDGET_SHARES = {
    "transportation": Decimal("0.25"),
    "accommodation": Decimal("0.30"),
    "attractions": Decimal("0.20"),
    "meals": Decimal("0.15"),
    "shopping": Decimal("0.05"),
    "miscellaneous": Decimal("0.05"),
}


def build_fallback_plan(payload: SnapshotPayload) -> Plan:
    """Build a plan from the snapshot alone: no network, no clock, no randomness."""
    constraints = payload.constraints
    group = constraints.group_size or DEFAULT_GROUP_SIZE
    budget = constraints.max_budget_per_person
    if budget is None:
        budget = DEFAULT_BUDGET_PER_PERSON
    dates = list(constraints.date_window.all_dates)
    top_places = list(payload.votes_summary[:3])
    top_names = [v.name for v in top_places]
    total_budget = _multiply(budget, group)

    day1 = PlanDay(
        day=_date_at(dates, 0),
        label="วันที่ 1",
        items=[
            _attraction("09:00", top_places, 0, group),
            PlanItem(
                time="12:00",
                name="อาหารกลางวัน - ร้านอาหารท้องถิ่น",
                type="meal",
                est_cost=150 * group,
                duration="1 ชั่วโมง",
            ),
            _attraction("14:00", top_places, 1, group),
            PlanItem(time="18:00", name="เช็คอินที่พัก", type="checkin", est_cost=0, duration="30 นาที"),
            PlanItem(
                time="19:00",
                name="อาหารเย็น - ร้านอาหารริมน้ำ",
                type="meal",
                est_cost=200 * group,
                duration="1.5 ชั่วโมง",
            ),
        ],
    )
    day2 = PlanDay(
        day=_date_at(dates, 1),
        label="วันที่ 2",
        items=[
            PlanItem(time="08:00", name="อาหารเช้าที่โรงแรม", type="meal", est_cost=0, duration="1 ชั่วโมง"),
            PlanItem(time="10:00", name="เช็คเอาท์", type="checkout", est_cost=0, duration="30 นาที"),
            _attraction("11:00", top_places, 2, group),
            PlanItem(time="14:00", name="เดินทางกลับ", type="travel", est_cost=0, duration="3 ชั่วโมง"),
        ],
    )

    return Plan(
        title=f"แผนการเดินทาง {top_names[0] if top_names else 'ท่องเที่ยวไทย'}",
        dates=f"{dates[0]} ถึง {dates[-1]}" if len(dates) >= 2 else None,
        participants=group,
        total_budget=total_budget,
        overview=PlanOverview(
            destinations=top_names + list(PLACEHOLDER_NAMES[len(top_names):]),
            accommodation="โรงแรม/รีสอร์ทใกล้จุดท่องเที่ยว",
            transportation="รถเช่า / รถตู้",
            total_distance="≈ 150 กม.",
        ),
        itinerary=[day1, day2],
        budget_breakdown=BudgetBreakdown(
            **{category: round_half_up(Decimal(total_budget) * share) for category, share in BUDGET_SHARES.items()}
        ),
        tips=[
            "เตรียมเงินสดสำหรับจ่ายค่าบริการเล็กน้อย",
            "ควรเผื่อเวลาเดินทางระหว่างจุดหมายประมาณ 20-30%",
            "ตรวจสอบสภาพอากาศก่อนออกเดินทาง",
            f"งบประมาณรวม {total_budget:,} บาท สำหรับ {group} คน",
        ],
    )


def round_half_up(value: Union[Number, Decimal]) -> int:
    # round() is banker's rounding; costs round .5 upwards
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def _attraction(time: str, places: List[VoteSummary], slot: int, group: int) -> PlanItem:
    vote: Optional[VoteSummary] = places[slot] if slot < len(places) else None
    cost = PLACEHOLDER_COSTS[slot]
    if vote is not None and vote.estimated_cost is not None:
        cost = vote.estimated_cost
    return PlanItem(
        time=time,
        name=vote.name if vote else PLACEHOLDER_NAMES[slot],
        type="attraction",
        location=(vote.location if vote else None) or UNKNOWN_LOCATION,
        est_cost=cost * group if isinstance(cost, int) else round_half_up(Decimal(cost) * group),
        duration=(vote.duration if vote else None) or DEFAULT_DURATION,
    )


def _date_at(dates: List[str], index: int) -> str:
    if index < len(dates) and dates[index]:
        return dates[index]
    return PLACEHOLDER_DATES[index]


def _multiply(budget: Number, group: int) -> Number:
    # large integer inputs overflow float arithmetic
    if isinstance(budget, int):
        return budget * group
    product = Decimal(budget) * group
    if product == product.to_integral_value():
        return int(product)
    value = float(product)
    if math.isfinite(value):
        return value
    return round_half_up(product)
