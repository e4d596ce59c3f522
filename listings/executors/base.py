"""Adapter executors with status instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Tuple, TYPE_CHECKING

from exceptions import AdapterError
from listings.models import AdapterRunSnapshot, SearchFilters, StandardListing
from listings.utils.redaction import redact_secrets

if TYPE_CHECKING:
    from listings.adapters.base import SourceAdapter

logger = logging.getLogger(__name__)


async def run_adapter_with_status(
    name: str,
    adapter: "SourceAdapter",
    filters: SearchFilters,
    *,
    timeout_seconds: float,
) -> Tuple[List[StandardListing], AdapterRunSnapshot]:
    """Run one adapter under a timeout. Never raises for adapter failures."""
    started = time.monotonic()
    try:
        results = await asyncio.wait_for(adapter.search(filters), timeout=timeout_seconds)
        results = list(results or [])
        elapsed_ms = int((time.monotonic() - started) * 1000)
        malformed = sum(1 for item in results if not isinstance(item, StandardListing))
        if malformed:
            logger.warning("[%s] Adapter returned %d malformed listings", name, malformed)
            status = AdapterRunSnapshot(
                source=name,
                status="error",
                latency_ms=elapsed_ms,
                message=f"Adapter returned malformed listings ({malformed} of {len(results)})",
            )
            return [], status
        status = AdapterRunSnapshot(
            source=name,
            status="ok",
            result_count=len(results),
            latency_ms=elapsed_ms,
        )
        return results, status
    except asyncio.TimeoutError:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.warning("[%s] Search timed out after %ss", name, timeout_seconds)
        status = AdapterRunSnapshot(
            source=name,
            status="timeout",
            latency_ms=elapsed_ms,
            message=f"Search timed out after {timeout_seconds:g}s",
            retryable=True,
        )
        return [], status
    except AdapterError as e:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        message = redact_secrets(e.message)
        logger.warning("[%s] Search failed: %s", name, message)
        status = AdapterRunSnapshot(
            source=name,
            status="error",
            latency_ms=elapsed_ms,
            message=message,
            retryable=e.retryable,
        )
        return [], status
    except Exception as e:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        error_msg = redact_secrets(str(e)) or type(e).__name__
        logger.exception("[%s] Unexpected search error: %s", name, type(e).__name__)
        status = AdapterRunSnapshot(
            source=name,
            status="error",
            latency_ms=elapsed_ms,
            message=f"Search failed: {error_msg[:200]}",
        )
        return [], status
