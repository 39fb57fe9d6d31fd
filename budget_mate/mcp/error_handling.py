"""Consistent error handling for MCP tool functions."""

from __future__ import annotations

import functools
import logging
from typing import Callable

import httpx
from pydantic import ValidationError

from budget_mate.core.frequency import InvalidFrequency
from budget_mate.core.resolvers import ResolverError
from budget_mate.core.supabase_client import SupabaseError
from budget_mate.models.schemas import InvalidAmount

logger = logging.getLogger("budget_mate")


def handle_tool_errors(fn: Callable) -> Callable:
    """Decorator that catches known exceptions and returns user-friendly error strings.

    MCP tools must return ``str``, not raise.  This ensures all tools
    follow that contract without duplicating try/except blocks.
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except SupabaseError as e:
            msg = f"Database error: {e.message}"
            if e.hint:
                msg += f" (hint: {e.hint})"
            return msg
        except ResolverError as e:
            return str(e)
        except InvalidFrequency as e:
            return f"Invalid frequency: {e}"
        except InvalidAmount as e:
            return f"Invalid amount for {e.field_name}: {e.value!r}"
        except httpx.ConnectError:
            return "Cannot connect to Supabase. Check your network connection."
        except httpx.TimeoutException:
            return "Request to Supabase timed out. Please try again."
        except ValidationError as e:
            return f"Invalid data: {e.error_count()} validation error(s). Check your input."
        except Exception as e:
            logger.exception("Unexpected error in tool %s", fn.__name__)
            return f"Unexpected error: {type(e).__name__}: {e}"

    return wrapper
