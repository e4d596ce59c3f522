"""Sample listings source for development and demos."""

from __future__ import annotations

import hashlib
import random
from typing import List

from listings.adapters.base import SourceAdapter
from listings.models import Bills, Contact, SearchFilters, StandardListing

_STREETS = ["Oxford Road", "Wilmslow Road", "Victoria Street", "Mill Lane", "Park Avenue", "Station Road"]
_FEATURES = ["Garden", "Parking", "Near university", "Bus stop outside", "Double glazing", "Bike storage"]
_AMENITIES = ["Washing machine", "Dishwasher", "Broadband", "Gym nearby", "Train station 5 min walk"]
_TYPES = ["flat", "house", "studio", "shared", "room"]


class SampleListingsAdapter(SourceAdapter):
    """Mock source - returns deterministic sample listings for a location."""

    def __init__(self, name: str = "sample", count_range: tuple = (8, 15)):
        self.name = name
        self.count_range = count_range

    async def search(self, filters: SearchFilters) -> List[StandardListing]:
        seed_text = f"{self.name}:{filters.location.lower()}"
        seed = int(hashlib.md5(seed_text.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)

        listings = []
        for i in range(rng.randint(*self.count_range)):
            property_type = rng.choice(_TYPES)
            bedrooms = 1 if property_type in ("studio", "room") else rng.randint(1, 4)
            price = float(rng.randrange(450, 1600, 25))
            images = tuple(
                f"https://picsum.photos/seed/{seed + i}-{n}/640/480" for n in range(rng.randint(0, 6))
            )
            listings.append(
                StandardListing(
                    id=f"{seed:x}-{i}",
                    source=self.name,
                    source_url=f"https://example.com/rentals/{seed:x}-{i}",
                    title=f"{bedrooms} bed {property_type} on {rng.choice(_STREETS)}",
                    description=(
                        f"A {'well presented' if i % 2 else 'spacious'} {property_type} in "
                        f"{filters.location}. " * rng.randint(1, 5)
                    ).strip(),
                    price=price,
                    location=f"{rng.choice(_STREETS)}, {filters.location}",
                    property_type=property_type,
                    bedrooms=bedrooms,
                    bathrooms=rng.randint(1, 2),
                    furnished=rng.random() > 0.4,
                    features=tuple(rng.sample(_FEATURES, rng.randint(0, 3))),
                    amenities=tuple(rng.sample(_AMENITIES, rng.randint(0, 3))),
                    bills=Bills(included=rng.random() > 0.6),
                    images=images,
                    contact=Contact(name="Sample Lettings", verified=rng.random() > 0.5),
                )
            )
        return listings
