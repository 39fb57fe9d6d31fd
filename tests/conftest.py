"""Shared test fixtures for Budget Mate tests."""

from budget_mate.models.schemas import (
    Account,
    Envelope,
    IncomeStream,
)


def make_envelope(
    name: str = "Power",
    target_amount: float = 300.0,
    frequency: str = "quarterly",
    pay_cycle_amount: float = 0.0,
    opening_balance: float = 0.0,
    current_amount: float = 0.0,
    next_payment_due: str | None = None,
    priority: str = "important",
    envelope_type: str = "expense",
    is_cc_holding: bool = False,
    annual_amount: float | None = None,
    category_name: str | None = None,
    notes: str | None = None,
) -> Envelope:
    return Envelope(
        id=f"env-{name.lower().replace(' ', '-')}",
        name=name,
        category_name=category_name,
        target_amount=target_amount,
        annual_amount=annual_amount,
        frequency=frequency,
        pay_cycle_amount=pay_cycle_amount,
        opening_balance=opening_balance,
        current_amount=current_amount,
        next_payment_due=next_payment_due,
        priority=priority,
        envelope_type=envelope_type,
        is_cc_holding=is_cc_holding,
        notes=notes,
    )


def make_account(
    name: str = "Everyday",
    type_: str = "transaction",
    balance: float = 0.0,
    is_credit_card_holding: bool = False,
    nickname: str | None = None,
) -> Account:
    return Account(
        id=f"acc-{name.lower().replace(' ', '-')}",
        name=name,
        nickname=nickname,
        type=type_,
        current_balance=balance,
        is_credit_card_holding=is_credit_card_holding,
    )


def make_income(
    name: str = "Salary",
    amount: float = 2000.0,
    frequency: str = "fortnightly",
    allocations: list[dict] | None = None,
) -> IncomeStream:
    return IncomeStream(
        id=f"inc-{name.lower().replace(' ', '-')}",
        name=name,
        amount=amount,
        frequency=frequency,
        allocations=allocations or [],
    )


def envelope_row(**overrides) -> dict:
    """A raw ``envelopes`` row as PostgREST returns it."""
    row = {
        "id": "env-1",
        "name": "Power",
        "category_id": None,
        "target_amount": "300.00",
        "annual_amount": None,
        "frequency": "quarterly",
        "pay_cycle_amount": "46.15",
        "opening_balance": "0",
        "current_amount": "120.50",
        "due_date": None,
        "next_payment_due": "2025-03-31",
        "priority": "Essential",
        "envelope_type": "expense",
        "is_cc_holding": False,
        "notes": None,
    }
    row.update(overrides)
    return row
