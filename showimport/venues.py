"""
Venue registry.

Maps the crawler's venue identifiers to the catalog metadata used when
importing its events.

To add a venue:
1. Add a [venues.<slug>] section to config.toml (name, city, state, address)
2. Or, for a venue every install should know, add it to DEFAULT_VENUES below
"""

from typing import Iterable, Iterator, Optional

from showimport.errors import UnknownVenueError
from showimport.models import VenueInfo

DEFAULT_VENUES: dict[str, VenueInfo] = {
    # Phoenix, AZ
    "valley-bar": VenueInfo("valley-bar", "Valley Bar", "Phoenix", "AZ", "130 N Central Ave"),
    "crescent-ballroom": VenueInfo("crescent-ballroom", "Crescent Ballroom", "Phoenix", "AZ", "308 N 2nd Ave"),
    "the-van-buren": VenueInfo("the-van-buren", "The Van Buren", "Phoenix", "AZ", "401 W Van Buren St"),
    "celebrity-theatre": VenueInfo("celebrity-theatre", "Celebrity Theatre", "Phoenix", "AZ", "440 N 32nd St"),
    "arizona-financial-theatre": VenueInfo(
        "arizona-financial-theatre", "Arizona Financial Theatre", "Phoenix", "AZ", "400 W Washington St",
    ),
}


class VenueRegistry:
    """Read-only lookup from venue identifier to VenueInfo."""

    def __init__(self, venues: Iterable[VenueInfo]):
        self._venues = {v.slug: v for v in venues}

    @classmethod
    def default(cls) -> "VenueRegistry":
        return cls(DEFAULT_VENUES.values())

    @classmethod
    def from_config(cls, venues_cfg: Optional[dict[str, dict]]) -> "VenueRegistry":
        """
        Build a registry from the enabled [venues] sections of config.toml.

        Falls back to DEFAULT_VENUES when the config defines no venues.
        """
        if not venues_cfg:
            return cls.default()
        return cls(
            VenueInfo(
                slug=slug,
                name=v["name"],
                city=v["city"],
                state=v["state"],
                address=v.get("address"),
            )
            for slug, v in venues_cfg.items()
        )

    def lookup(self, venue_slug: str) -> VenueInfo:
        try:
            return self._venues[venue_slug]
        except KeyError:
            raise UnknownVenueError(venue_slug) from None

    def __contains__(self, venue_slug: object) -> bool:
        return venue_slug in self._venues

    def __iter__(self) -> Iterator[VenueInfo]:
        return iter(self._venues.values())

    def __len__(self) -> int:
        return len(self._venues)
