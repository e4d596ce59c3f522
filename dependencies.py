"""
Shared FastAPI dependencies.

The aggregator is created in the application lifespan (or injected by tests)
and stored on ``app.state``; routes resolve it per request through here.
"""

from fastapi import Request

from exceptions import ConfigurationError
from listings.aggregator import ListingAggregator


def get_aggregator(request: Request) -> ListingAggregator:
    aggregator = getattr(request.app.state, "aggregator", None)
    if aggregator is None:
        raise ConfigurationError("Listing aggregator is not initialised")
    return aggregator
