import pytest

import showimport.config as cfg_module
from showimport.errors import UnknownVenueError
from showimport.venues import DEFAULT_VENUES, VenueRegistry


def test_lookup_known_and_unknown(registry):
    venue = registry.lookup("mohawk")
    assert venue.name == "Mohawk"
    assert venue.state == "TX"
    assert "valley-bar" in registry

    with pytest.raises(UnknownVenueError) as excinfo:
        registry.lookup("the-fillmore")
    assert excinfo.value.venue_slug == "the-fillmore"


def test_default_registry_matches_table():
    registry = VenueRegistry.default()
    assert len(registry) == len(DEFAULT_VENUES)
    assert registry.lookup("crescent-ballroom").address == "308 N 2nd Ave"
    for key, info in DEFAULT_VENUES.items():
        assert info.slug == key


def test_registry_from_config(tmp_path):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
[database]
path = "db/test.db"

[venues.mohawk]
name = "Mohawk"
city = "Austin"
state = "TX"

[venues.gothic-theatre]
name = "Gothic Theatre"
city = "Englewood"
state = "CO"
enabled = false
"""
    )
    cfg = cfg_module.load(config_path, tmp_path / "missing.env")
    registry = VenueRegistry.from_config(cfg_module.get_venues(cfg))

    assert len(registry) == 1
    assert registry.lookup("mohawk").address is None
    assert "gothic-theatre" not in registry


def test_registry_from_empty_config_uses_defaults():
    assert len(VenueRegistry.from_config({})) == len(DEFAULT_VENUES)
