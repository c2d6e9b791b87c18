from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, NonNegativeFloat, NonNegativeInt, PositiveInt

Number = Union[int, float]
NonNegativeNumber = Union[NonNegativeInt, NonNegativeFloat]

PlanItemType = Literal["travel", "meal", "attraction", "checkin", "checkout", "shopping"]

# ------- Snapshot (request) models -------
class VoteSummary(BaseModel):
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    estimated_cost: Optional[NonNegativeNumber] = None
    duration: Optional[str] = None

class DateWindow(BaseModel):
    all_dates: List[str] = Field(default_factory=list)

class Constraints(BaseModel):
    group_size: Optional[PositiveInt] = None
    max_budget_per_person: Optional[NonNegativeNumber] = None
    travel_styles: List[str] = Field(default_factory=list)
    preferred_provinces: List[str] = Field(default_factory=list)
    date_window: DateWindow = Field(default_factory=DateWindow)

class SnapshotPayload(BaseModel):
    constraints: Constraints = Field(default_factory=Constraints)
    votes_summary: List[VoteSummary] = Field(default_factory=list)  # ranked, top vote first

# ------- Plan (response) models -------
class _WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python; unknown keys from the model are dropped
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class PlanItem(_WireModel):
    time: str
    name: str
    type: PlanItemType
    location: Optional[str] = None
    est_cost: Optional[NonNegativeNumber] = Field(None, alias="estCost")
    duration: Optional[str] = None

class PlanDay(_WireModel):
    day: str
    label: str
    items: List[PlanItem] = Field(default_factory=list)

class PlanOverview(_WireModel):
    destinations: List[str] = Field(default_factory=list)
    accommodation: Optional[str] = None
    transportation: Optional[str] = None
    total_distance: Optional[str] = Field(None, alias="totalDistance")

class BudgetBreakdown(_WireModel):
    transportation: NonNegativeNumber
    accommodation: NonNegativeNumber
    attractions: NonNegativeNumber
    meals: NonNegativeNumber
    shopping: NonNegativeNumber
    miscellaneous: NonNegativeNumber

class Plan(_WireModel):
    title: str
    dates: Optional[str] = None
    participants: Optional[int] = None
    total_budget: Optional[Number] = Field(None, alias="totalBudget")
    overview: PlanOverview
    itinerary: List[PlanDay]
    budget_breakdown: BudgetBreakdown = Field(..., alias="budgetBreakdown")
    tips: List[str] = Field(default_factory=list)

# ------- Envelopes -------
class PlanEnvelope(_WireModel):
    success: bool = True
    data: Plan
    from_llm: bool = Field(..., alias="fromLLM")
    note: Optional[str] = None

    def to_wire(self) -> dict:
        """JSON-ready dict; ``note`` and unset optional plan fields are omitted."""
        body = {"success": self.success, "data": _plan_to_wire(self.data), "fromLLM": self.from_llm}
        if self.note is not None:
            body["note"] = self.note
        return body

class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str


def _plan_to_wire(plan: Plan) -> dict:
    body = plan.model_dump(mode="json", by_alias=True, exclude_unset=True)
    # these three are part of the contract even when null
    body.setdefault("dates", plan.dates)
    body.setdefault("participants", plan.participants)
    body.setdefault("totalBudget", plan.total_budget)
    return body
