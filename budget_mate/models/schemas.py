"""Pydantic models for budget rows and tool inputs.

Rows come back from Supabase as loosely typed JSON (``numeric`` columns
are often strings, balances may be ``null``). Everything is mapped into
these models before it reaches the calculation core.
"""

import math
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class InvalidAmount(ValueError):
    """Raised when a monetary value is negative where it must not be, or non-finite."""

    def __init__(self, field_name: str, value: Any):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid amount for {field_name}: {value!r}")


def parse_amount(
    value: Any,
    field_name: str = "amount",
    *,
    allow_negative: bool = True,
    default: Optional[float] = 0.0,
) -> float:
    """Parse a money value from a database row or user input.

    ``None`` becomes *default* (``0.0`` for nullable balance columns);
    pass ``default=None`` to reject missing values instead. Strings are
    parsed as decimals. ``NaN``/``Infinity`` are always rejected, and
    negative values are rejected unless *allow_negative*.
    """
    if value is None or value == "":
        if default is None:
            raise InvalidAmount(field_name, value)
        return default
    if isinstance(value, bool):
        raise InvalidAmount(field_name, value)
    try:
        amount = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidAmount(field_name, value) from e
    if not math.isfinite(amount):
        raise InvalidAmount(field_name, value)
    if not allow_negative and amount < 0:
        raise InvalidAmount(field_name, value)
    return amount


# --- Enums ---

class Frequency(str, Enum):
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    NONE = "none"


class Priority(str, Enum):
    ESSENTIAL = "essential"
    IMPORTANT = "important"
    DISCRETIONARY = "discretionary"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    TRANSACTION = "transaction"
    CASH = "cash"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"
    DEBT = "debt"
    OTHER = "other"


BANK_ACCOUNT_TYPES = {
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.TRANSACTION,
    AccountType.CASH,
}

DEFAULT_BUFFER_PERCENT = 10.0


def _coerce_frequency(value: Any) -> Any:
    # Deferred import: frequency.py depends on this module for the enum.
    from budget_mate.core.frequency import parse_frequency

    if value is None:
        return Frequency.MONTHLY
    return parse_frequency(value)


# --- Row Models ---

class LevelingData(BaseModel):
    """The ``leveling_data`` JSON column of a leveled (seasonal) bill envelope.

    ``monthly_amounts`` holds twelve typical bills, January first.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    monthly_amounts: list[float] = Field(alias="monthlyAmounts")
    yearly_average: float = Field(alias="yearlyAverage")
    buffer_percent: float = Field(DEFAULT_BUFFER_PERCENT, alias="bufferPercent")
    estimation_type: str = Field("12-month", alias="estimationType")
    high_season_estimate: Optional[float] = Field(None, alias="highSeasonEstimate")
    low_season_estimate: Optional[float] = Field(None, alias="lowSeasonEstimate")
    last_updated: Optional[str] = Field(None, alias="lastUpdated")

    @model_validator(mode="before")
    @classmethod
    def _default_average(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("yearlyAverage", data.get("yearly_average")) is None:
            amounts = data.get("monthlyAmounts", data.get("monthly_amounts"))
            if isinstance(amounts, list) and amounts:
                data = {**data, "yearlyAverage": sum(
                    parse_amount(a, "monthly_amounts") for a in amounts
                ) / len(amounts)}
        return data

    @field_validator("monthly_amounts", mode="before")
    @classmethod
    def _twelve_months(cls, v: Any) -> list[float]:
        if not isinstance(v, list) or len(v) != 12:
            raise ValueError("Must provide exactly 12 monthly amounts")
        return [parse_amount(a, "monthly_amounts", allow_negative=False, default=None) for a in v]

    @field_validator("yearly_average", mode="before")
    @classmethod
    def _average(cls, v: Any) -> float:
        return parse_amount(v, "yearly_average", allow_negative=False)

    @field_validator("buffer_percent", mode="before")
    @classmethod
    def _buffer(cls, v: Any) -> float:
        return parse_amount(v, "buffer_percent", allow_negative=False, default=DEFAULT_BUFFER_PERCENT)


class Envelope(BaseModel):
    """A row from the ``envelopes`` table."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    target_amount: float = 0.0
    annual_amount: Optional[float] = None
    frequency: Frequency = Frequency.MONTHLY
    pay_cycle_amount: float = 0.0
    opening_balance: float = 0.0
    current_amount: float = 0.0
    due_date: Optional[str] = None
    next_payment_due: Optional[str] = None
    priority: Priority = Priority.IMPORTANT
    envelope_type: str = "expense"
    is_cc_holding: bool = False
    notes: Optional[str] = None
    leveling_data: Optional[LevelingData] = None
    seasonal_pattern: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _embedded_category(cls, data: Any) -> Any:
        # PostgREST returns the joined category as {"envelope_categories": {"name": ...}}
        if isinstance(data, dict) and "envelope_categories" in data:
            data = dict(data)
            category = data.pop("envelope_categories")
            if isinstance(category, dict) and not data.get("category_name"):
                data["category_name"] = category.get("name")
        return data

    @field_validator("id", "category_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("target_amount", "pay_cycle_amount", mode="before")
    @classmethod
    def _non_negative_amount(cls, v: Any, info) -> float:
        return parse_amount(v, info.field_name, allow_negative=False)

    @field_validator("opening_balance", "current_amount", mode="before")
    @classmethod
    def _balance(cls, v: Any, info) -> float:
        return parse_amount(v, info.field_name)

    @field_validator("annual_amount", mode="before")
    @classmethod
    def _optional_annual(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return parse_amount(v, "annual_amount", allow_negative=False)

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, v: Any) -> Any:
        return _coerce_frequency(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> Any:
        if v is None:
            return Priority.IMPORTANT
        return v.lower() if isinstance(v, str) else v

    @field_validator("envelope_type", mode="before")
    @classmethod
    def _envelope_type(cls, v: Any) -> str:
        return v or "expense"

    @field_validator("is_cc_holding", mode="before")
    @classmethod
    def _holding_flag(cls, v: Any) -> bool:
        return bool(v)

    @property
    def due(self) -> Optional[str]:
        """The next payment due date, falling back to the static due date."""
        return self.next_payment_due or self.due_date


class Account(BaseModel):
    """A row from the ``accounts`` table."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    nickname: Optional[str] = None
    type: AccountType = AccountType.OTHER
    current_balance: float = 0.0
    is_credit_card_holding: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> Any:
        if not v:
            return AccountType.OTHER
        v = str(v).lower()
        return v if v in AccountType._value2member_map_ else AccountType.OTHER

    @field_validator("current_balance", mode="before")
    @classmethod
    def _balance(cls, v: Any) -> float:
        return parse_amount(v, "current_balance")

    @field_validator("is_credit_card_holding", mode="before")
    @classmethod
    def _holding_flag(cls, v: Any) -> bool:
        return bool(v)

    @property
    def display_name(self) -> str:
        return self.nickname or self.name

    @property
    def is_bank_account(self) -> bool:
        return self.type in BANK_ACCOUNT_TYPES


class IncomeAllocation(BaseModel):
    """One entry of a recurring income's ``allocations`` JSON column."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    envelope_id: Optional[str] = Field(None, alias="envelopeId")
    envelope: Optional[str] = None
    amount: float = 0.0

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> float:
        return parse_amount(v, "amount", allow_negative=False)


class IncomeStream(BaseModel):
    """A row from the ``recurring_income`` table."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    amount: float = 0.0
    frequency: Frequency = Frequency.FORTNIGHTLY
    allocations: list[IncomeAllocation] = []

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> float:
        return parse_amount(v, "amount", allow_negative=False)

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, v: Any) -> Any:
        if v is None:
            return Frequency.FORTNIGHTLY
        return _coerce_frequency(v)

    @field_validator("allocations", mode="before")
    @classmethod
    def _allocations(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []


# --- MCP Tool Input Models ---


class ReconcileInput(BaseModel):
    """Manual reconciliation figures."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    bank_balance: float = Field(
        ..., description="Total of bank account balances", allow_inf_nan=False
    )
    envelope_total: float = Field(
        ..., description="Sum of all envelope balances", allow_inf_nan=False
    )
    cc_holding_balance: float = Field(
        default=0.0,
        description="Money held back for credit card payments",
        ge=0,
        allow_inf_nan=False,
    )


class ScenarioDetailInput(BaseModel):
    """Input for viewing a single scenario in detail."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    scenario: str = Field(
        ..., description="Scenario id or name (partial match), e.g. 'pause-discretionary'"
    )


class PaydayInput(BaseModel):
    """Input for splitting a single pay across envelopes."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    pay_amount: float = Field(
        ..., description="Dollar amount of this pay", ge=0, allow_inf_nan=False
    )
    apply_suggestion: Optional[int] = Field(
        None,
        description="Number of a surplus suggestion (1 = first) to work out per-envelope amounts for",
        ge=1,
    )


class AccountReconcileInput(BaseModel):
    """Input for reconciling each bank account against the envelopes."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    surplus: float = Field(
        default=0.0,
        description="Income you know is sitting unallocated; negative for a deficit",
        allow_inf_nan=False,
    )


class InitialDistributionInput(BaseModel):
    """Input for spreading an existing balance across envelopes."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    current_balance: float = Field(
        ..., description="Money on hand to distribute", ge=0, allow_inf_nan=False
    )


class LeveledBillsInput(BaseModel):
    """Input for the leveled bill status view."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    start_month: int = Field(
        default=1, description="Month leveling started (1 = January)", ge=1, le=12
    )


class SetEnvelopeTargetInput(BaseModel):
    """Input for changing an envelope's target and frequency."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    envelope_name: str = Field(..., description="Envelope name (partial match)")
    target_amount: float = Field(
        ..., description="Target amount per occurrence", ge=0, allow_inf_nan=False
    )
    frequency: Optional[Frequency] = Field(
        None, description="How often the target is due. Defaults to the current frequency."
    )
    next_payment_due: Optional[str] = Field(
        None, description="Next due date (YYYY-MM-DD)"
    )

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, v: Any) -> Any:
        return None if v is None else _coerce_frequency(v)

    @field_validator("next_payment_due")
    @classmethod
    def _iso_date(cls, v: Optional[str]) -> Optional[str]:
        if v:
            date.fromisoformat(v)
        return v or None


class RecomputeContributionsInput(BaseModel):
    """Input for recomputing per-pay contributions."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    apply: bool = Field(
        default=False,
        description="If False, returns a preview. If True, writes the new amounts.",
    )


class ExportPlannerInput(BaseModel):
    """Input for the planner CSV export."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    output_dir: Optional[str] = Field(
        None, description="Directory to write the CSV into. Defaults to the current directory."
    )
