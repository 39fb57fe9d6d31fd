"""Supabase REST client wrapper.

Async HTTP client for the Supabase PostgREST API (``<project>/rest/v1``).
Handles authentication headers, error mapping, and mapping raw rows into
typed models so the calculation core never sees loosely typed JSON.
"""

import logging
from typing import Any, Optional

import httpx

from budget_mate.models.schemas import Account, Envelope, IncomeStream

DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger("budget_mate")

# Postgres "undefined_column": a migration adding the column hasn't run yet
UNDEFINED_COLUMN = "42703"
# PostgREST cannot find the foreign key behind an embedded resource
MISSING_RELATIONSHIP = "PGRST200"
FALLBACK_CODES = {UNDEFINED_COLUMN, MISSING_RELATIONSHIP}

ENVELOPE_COLUMNS = (
    "id, name, category_id, target_amount, annual_amount, frequency, "
    "pay_cycle_amount, opening_balance, current_amount, due_date, "
    "next_payment_due, priority, envelope_type, is_cc_holding, notes, "
    "leveling_data, seasonal_pattern, envelope_categories(name)"
)
ENVELOPE_CORE_COLUMNS = (
    "id, name, target_amount, frequency, pay_cycle_amount, "
    "opening_balance, current_amount, next_payment_due"
)
ACCOUNT_COLUMNS = "id, name, nickname, type, current_balance, is_credit_card_holding"
ACCOUNT_CORE_COLUMNS = "id, name, type, current_balance"
INCOME_COLUMNS = "id, name, amount, frequency, allocations"


class SupabaseError(Exception):
    """Base exception for Supabase REST errors."""

    def __init__(self, status_code: int, code: str, message: str, hint: str | None = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.hint = hint
        super().__init__(f"Supabase Error [{status_code}] {code}: {message}")


class SupabaseClient:
    """Async client for the tables the budget calculations read and write."""

    def __init__(self, url: str, api_key: str, user_id: Optional[str] = None):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.user_id = user_id
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.url}/rest/v1",
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=DEFAULT_TIMEOUT,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_data: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        try:
            response = await self.client.request(
                method=method,
                url=path,
                params=params,
                json=json_data,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.json() if e.response.content else {}
            raise SupabaseError(
                status_code=e.response.status_code,
                code=str(body.get("code", e.response.status_code)),
                message=body.get("message", str(e)),
                hint=body.get("hint"),
            ) from e
        except httpx.TimeoutException as e:
            raise SupabaseError(
                status_code=408,
                code="timeout",
                message="Request to Supabase timed out. Please try again.",
            ) from e

        if not response.content:
            return []
        return response.json()

    def _owner_filter(self) -> dict[str, str]:
        return {"user_id": f"eq.{self.user_id}"} if self.user_id else {}

    async def _select(
        self,
        table: str,
        columns: str,
        fallback_columns: Optional[str] = None,
        **filters: str,
    ) -> list[dict[str, Any]]:
        """Select rows, retrying with *fallback_columns* if a column is missing."""
        params: dict[str, Any] = {"select": columns, "order": "name", **self._owner_filter(), **filters}
        try:
            return await self._request("GET", f"/{table}", params=params)
        except SupabaseError as e:
            if e.code not in FALLBACK_CODES or not fallback_columns:
                raise
            logger.warning(
                "Column missing on %s (%s); retrying with core columns", table, e.message
            )
            params["select"] = fallback_columns
            return await self._request("GET", f"/{table}", params=params)

    # --- Envelopes ---

    async def get_envelopes(self) -> list[Envelope]:
        """Get all envelopes for the configured user."""
        rows = await self._select("envelopes", ENVELOPE_COLUMNS, ENVELOPE_CORE_COLUMNS)
        return [Envelope(**row) for row in rows]

    async def update_envelope(self, envelope_id: str, updates: dict[str, Any]) -> Envelope:
        """Patch an envelope row and return the updated envelope."""
        rows = await self._request(
            "PATCH",
            "/envelopes",
            params={"id": f"eq.{envelope_id}", **self._owner_filter()},
            json_data=updates,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise SupabaseError(404, "not_found", f"Envelope {envelope_id} not found")
        return Envelope(**rows[0])

    # --- Accounts ---

    async def get_accounts(self) -> list[Account]:
        """Get all accounts for the configured user."""
        rows = await self._select("accounts", ACCOUNT_COLUMNS, ACCOUNT_CORE_COLUMNS)
        return [Account(**row) for row in rows]

    # --- Recurring income ---

    async def get_income_streams(self) -> list[IncomeStream]:
        """Get recurring income rows with their envelope allocations."""
        rows = await self._select("recurring_income", INCOME_COLUMNS)
        return [IncomeStream(**row) for row in rows]
