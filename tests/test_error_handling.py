"""Tests for MCP error handling decorator."""

import httpx

from budget_mate.core.frequency import parse_frequency
from budget_mate.core.resolvers import ResolverError
from budget_mate.core.supabase_client import SupabaseError
from budget_mate.mcp.error_handling import handle_tool_errors
from budget_mate.models.schemas import InvalidAmount


class TestHandleToolErrors:
    async def test_returns_result_on_success(self):
        @handle_tool_errors
        async def tool():
            return "ok"

        assert await tool() == "ok"

    async def test_catches_supabase_error(self):
        @handle_tool_errors
        async def tool():
            raise SupabaseError(404, "not_found", "Envelope env-1 not found")

        result = await tool()
        assert result == "Database error: Envelope env-1 not found"

    async def test_supabase_hint_included(self):
        @handle_tool_errors
        async def tool():
            raise SupabaseError(401, "PGRST301", "JWT expired", hint="Refresh the key")

        result = await tool()
        assert "(hint: Refresh the key)" in result

    async def test_catches_resolver_error(self):
        @handle_tool_errors
        async def tool():
            raise ResolverError("envelope", "xyz", ["Power", "Food"])

        result = await tool()
        assert "xyz" in result
        assert "Power" in result

    async def test_catches_invalid_frequency(self):
        @handle_tool_errors
        async def tool():
            parse_frequency("daily")

        result = await tool()
        assert result.startswith("Invalid frequency:")
        assert "daily" in result

    async def test_catches_invalid_amount(self):
        @handle_tool_errors
        async def tool():
            raise InvalidAmount("target_amount", -5)

        assert await tool() == "Invalid amount for target_amount: -5"

    async def test_catches_connect_error(self):
        @handle_tool_errors
        async def tool():
            raise httpx.ConnectError("Connection refused")

        result = await tool()
        assert "Cannot connect" in result

    async def test_catches_timeout(self):
        @handle_tool_errors
        async def tool():
            raise httpx.ReadTimeout("timed out")

        result = await tool()
        assert "timed out" in result.lower()

    async def test_catches_validation_error(self):
        @handle_tool_errors
        async def tool():
            from budget_mate.models.schemas import PaydayInput
            PaydayInput()  # type: ignore[call-arg]

        result = await tool()
        assert "Invalid data" in result
        assert "validation error" in result

    async def test_catches_unexpected_exception(self, caplog):
        @handle_tool_errors
        async def tool():
            raise RuntimeError("boom")

        result = await tool()
        assert "Unexpected error" in result
        assert "RuntimeError" in result
        assert "boom" in result
        assert any(r.name == "budget_mate" for r in caplog.records)
