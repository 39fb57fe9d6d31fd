"""Reconciliation of bank balances against envelope balances.

The credit-card holding amount is money still in the bank but already
spent on a card, so it comes off the bank side before comparing with the
envelope total. No I/O; inputs are never mutated.
"""

from budget_mate.models.results import (
    AccountSummary,
    BalanceSummary,
    MultiAccountReconciliation,
    ReconciliationBreakdown,
    ReconciliationResult,
)
from budget_mate.models.schemas import Account, AccountType, Envelope

# Below a cent the books are balanced
BALANCED_THRESHOLD = 0.01
# Display-only band for small differences
MINOR_DIFFERENCE_THRESHOLD = 10.0


def available_cash(bank_balance: float, cc_holding_balance: float) -> float:
    """Bank balance minus money held back for credit card payments."""
    return bank_balance - cc_holding_balance


def classify_discrepancy(discrepancy: float) -> str:
    size = abs(discrepancy)
    if size < BALANCED_THRESHOLD:
        return "balanced"
    if size < MINOR_DIFFERENCE_THRESHOLD:
        return "minor difference"
    return "out of balance"


def _explain(discrepancy: float, status: str) -> str:
    if status == "balanced":
        return "Your books are balanced! Bank balance matches your envelope allocations."
    if discrepancy > 0:
        return (
            f"You have ${discrepancy:,.2f} more in the bank than allocated to envelopes. "
            "Consider allocating this surplus."
        )
    return (
        f"Your envelopes total ${abs(discrepancy):,.2f} more than your available cash. "
        "You may be over-allocated."
    )


def validate_reconciliation(
    bank_balance: float,
    envelope_total: float,
    cc_holding_balance: float,
) -> ReconciliationResult:
    """Check that bank balance less the CC holding equals the envelope total.

    ``discrepancy = (bank_balance - cc_holding_balance) - envelope_total``.
    Only differences under a cent count as balanced; the ``status`` band
    for differences under $10 is for display.
    """
    cash = available_cash(bank_balance, cc_holding_balance)
    adjusted = envelope_total
    discrepancy = cash - adjusted
    status = classify_discrepancy(discrepancy)

    return ReconciliationResult(
        is_balanced=status == "balanced",
        discrepancy=discrepancy,
        status=status,
        breakdown=ReconciliationBreakdown(
            bank_balance=bank_balance,
            envelope_total=envelope_total,
            cc_holding_balance=cc_holding_balance,
            adjusted_envelope_total=adjusted,
            available_cash=cash,
        ),
        explanation=_explain(discrepancy, status),
    )


def bank_total(accounts: list[Account]) -> float:
    return sum(a.current_balance for a in accounts if a.is_bank_account)


def cc_holding_total(accounts: list[Account], envelopes: list[Envelope]) -> float:
    """Money set aside for card payments, from holding envelopes and holding accounts."""
    from_envelopes = sum(e.current_amount for e in envelopes if e.is_cc_holding)
    from_accounts = sum(a.current_balance for a in accounts if a.is_credit_card_holding)
    return from_envelopes + from_accounts


def validate_reconciliation_from_data(
    accounts: list[Account],
    envelopes: list[Envelope],
) -> ReconciliationResult:
    """Reconcile straight from account and envelope rows.

    Holding envelopes are excluded from the envelope total since their
    balance is already taken off the bank side.
    """
    envelope_total = sum(e.current_amount for e in envelopes if not e.is_cc_holding)
    return validate_reconciliation(
        bank_total(accounts),
        envelope_total,
        cc_holding_total(accounts, envelopes),
    )


def balance_summary(accounts: list[Account], envelopes: list[Envelope]) -> BalanceSummary:
    """Headline balances: bank, card debt, available cash, unallocated and net worth."""
    bank = bank_total(accounts)
    card_debt = sum(
        abs(a.current_balance) for a in accounts
        if a.type in (AccountType.CREDIT_CARD, AccountType.DEBT)
    )
    assets = bank + sum(
        a.current_balance for a in accounts if a.type == AccountType.INVESTMENT
    )
    envelopes_total = sum(e.current_amount for e in envelopes if not e.is_cc_holding)
    holding = cc_holding_total(accounts, envelopes)
    cash = available_cash(bank, holding)

    return BalanceSummary(
        bank_total=bank,
        credit_card_debt=card_debt,
        envelope_total=envelopes_total,
        cc_holding_total=holding,
        available_cash=cash,
        unallocated=cash - envelopes_total,
        net_worth=assets - card_debt,
    )


def format_balance_with_cc_note(
    bank_balance: float,
    cc_holding_balance: float,
) -> tuple[float, str | None]:
    """Balance to display and an optional note about the held amount."""
    if cc_holding_balance <= BALANCED_THRESHOLD:
        return bank_balance, None
    return (
        available_cash(bank_balance, cc_holding_balance),
        f"${cc_holding_balance:,.2f} is held for credit card payments",
    )


# --- Multi-account reconciliation ---


def account_summaries(accounts: list[Account]) -> list[AccountSummary]:
    """One line per bank account; cards, debts and investments are left out."""
    return [
        AccountSummary(
            account_id=a.id,
            display_name=a.display_name,
            account_name=a.name,
            account_type=a.type.value,
            current_balance=a.current_balance,
        )
        for a in accounts
        if a.is_bank_account
    ]


def _holding_envelope_total(envelopes: list[Envelope]) -> float:
    return sum(e.current_amount for e in envelopes if e.is_cc_holding)


def calculate_surplus(accounts: list[Account], envelopes: list[Envelope]) -> float:
    """Money in the bank not assigned to any envelope, to the cent.

    ``surplus = bank - (envelopes - cc_holding)``, where the envelope sum
    includes the holding envelopes.
    """
    envelopes_total = sum(e.current_amount for e in envelopes)
    surplus = bank_total(accounts) - envelopes_total + _holding_envelope_total(envelopes)
    return round(surplus, 2)


def multi_account_reconciliation(
    accounts: list[Account],
    envelopes: list[Envelope],
    surplus: float = 0.0,
) -> MultiAccountReconciliation:
    """Reconcile the sum of every bank account against the envelopes.

    ``expected_bank = envelopes - cc_holding + surplus``. Transfers between
    the user's own accounts move money between lines without changing the
    total, so they never affect the result. Amounts are rounded to cents.
    """
    summaries = account_summaries(accounts)
    bank = sum(s.current_balance for s in summaries)
    envelopes_total = sum(e.current_amount for e in envelopes)
    holding = _holding_envelope_total(envelopes)
    expected = envelopes_total - holding + surplus

    discrepancy = round(bank - expected, 2)
    is_balanced = abs(discrepancy) < BALANCED_THRESHOLD

    if is_balanced:
        if len(summaries) == 1:
            explanation = "Your account is balanced with your envelope allocations."
        else:
            explanation = (
                f"All {len(summaries)} accounts are balanced with your envelope allocations."
            )
    elif discrepancy > 0:
        explanation = (
            f"You have ${discrepancy:,.2f} more in your accounts than expected. "
            "This could be unallocated income."
        )
    else:
        explanation = (
            f"Your envelopes expect ${abs(discrepancy):,.2f} more than is in your accounts. "
            "Review recent transactions."
        )

    return MultiAccountReconciliation(
        total_bank_balance=round(bank, 2),
        accounts=summaries,
        total_envelope_balance=round(envelopes_total, 2),
        cc_holding_balance=round(holding, 2),
        surplus=round(surplus, 2),
        expected_bank_balance=round(expected, 2),
        discrepancy=discrepancy,
        is_balanced=is_balanced,
        explanation=explanation,
    )
