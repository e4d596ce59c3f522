"""Adapter executors for the aggregation pipeline."""

from listings.executors.base import run_adapter_with_status

__all__ = ["run_adapter_with_status"]
