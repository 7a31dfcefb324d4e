"""
Tests for the single-species search flow.
"""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest
from pydantic import SecretStr

from hotspot_planner.config import Settings
from hotspot_planner.flows import species, taxonomy
from hotspot_planner.schemas import Location, Species
from hotspot_planner.services.http import create_client
from hotspot_planner.store import DataStore

ORIGIN = Location(latitude=45.5, longitude=-122.6)

TAXONOMY = [
    Species(
        species_code="grbher3", common_name="Great Blue Heron", scientific_name="Ardea herodias"
    ),
    Species(
        species_code="grnher", common_name="Green Heron", scientific_name="Butorides virescens"
    ),
    Species(species_code="osprey", common_name="Osprey", scientific_name="Pandion haliaetus"),
]

SIGHTINGS = [
    {
        "speciesCode": "osprey",
        "comName": "Osprey",
        "locId": "L1",
        "locName": "Smith Lake",
        "lat": 45.6,
        "lng": -122.7,
        "obsDt": "2026-05-01 07:00",
        "howMany": 2,
    },
    {
        "speciesCode": "osprey",
        "comName": "Osprey",
        "locId": "L1",
        "locName": "Smith Lake",
        "lat": 45.6,
        "lng": -122.7,
        "obsDt": "2026-05-03 08:00",
    },
    {
        "speciesCode": "osprey",
        "comName": "Osprey",
        "locId": "L2",
        "locName": "Backyard",
        "lat": 45.51,
        "lng": -122.61,
        "obsDt": "2026-05-02 09:00",
        "locationPrivate": True,
    },
]


def handler_for(nearby: list[dict[str, Any]], nearest: list[dict[str, Any]]) -> Any:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "/data/nearest/geo/recent/" in request.url.path:
            return httpx.Response(200, json=nearest)
        if "/data/obs/geo/recent/" in request.url.path:
            return httpx.Response(200, json=nearby)
        return httpx.Response(500)

    handler.requests = requests  # type: ignore[attr-defined]
    return handler


def use_fakes(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, handler: Any) -> None:
    settings = Settings(ebird_api_key=SecretStr("test-key"), data_dir=tmp_path)
    monkeypatch.setattr(species, "store", DataStore(tmp_path))
    monkeypatch.setattr(species, "get_settings", lambda: settings)
    monkeypatch.setattr(
        species,
        "create_client",
        lambda *args, **kwargs: create_client(transport=httpx.MockTransport(handler)),
    )
    monkeypatch.setattr(
        species,
        "fetch_species_sightings",
        species.fetch_species_sightings.with_options(retries=0),
    )
    monkeypatch.setattr(taxonomy, "store", DataStore(tmp_path))
    taxonomy.store.write_models(
        taxonomy.TAXONOMY_PATH, TAXONOMY, source="ebird.org", ttl=timedelta(days=1)
    )


class TestResolveSpecies:
    def test_exact_code(self) -> None:
        assert species.resolve_species("osprey", TAXONOMY).common_name == "Osprey"

    def test_best_name_match(self) -> None:
        assert species.resolve_species("heron", TAXONOMY).species_code == "grbher3"

    def test_prefix_beats_substring(self) -> None:
        assert species.resolve_species("green", TAXONOMY).species_code == "grnher"

    def test_no_match(self) -> None:
        with pytest.raises(ValueError, match="No species matches"):
            species.resolve_species("dodo", TAXONOMY)


class TestFetchSpeciesSightings:
    async def test_within_radius(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        handler = handler_for(SIGHTINGS, [])
        use_fakes(monkeypatch, tmp_path, handler)

        observations, from_nearest = await species.fetch_species_sightings.fn(
            "osprey", ORIGIN, 25, 14
        )

        assert len(observations) == 3
        assert not from_nearest
        assert len(handler.requests) == 1

    async def test_falls_back_to_nearest(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        handler = handler_for([], SIGHTINGS[:1])
        use_fakes(monkeypatch, tmp_path, handler)

        observations, from_nearest = await species.fetch_species_sightings.fn(
            "osprey", ORIGIN, 25, 14
        )

        assert [o.location_id for o in observations] == ["L1"]
        assert from_nearest
        assert handler.requests[1].url.path == "/v2/data/nearest/geo/recent/osprey"

    async def test_no_fallback_when_disabled(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        handler = handler_for([], SIGHTINGS)
        use_fakes(monkeypatch, tmp_path, handler)

        observations, from_nearest = await species.fetch_species_sightings.fn(
            "osprey", ORIGIN, 25, 14, nearest=False
        )

        assert observations == []
        assert not from_nearest
        assert len(handler.requests) == 1

    async def test_missing_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        use_fakes(monkeypatch, tmp_path, handler_for([], []))
        monkeypatch.setattr(species, "get_settings", lambda: Settings(data_dir=tmp_path))
        with pytest.raises(ValueError, match="EBIRD_API_KEY"):
            await species.fetch_species_sightings.fn("osprey", ORIGIN, 25, 14)


class TestFindSpeciesHotspotsFlow:
    async def test_saves_grouped_sightings(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_fakes(monkeypatch, tmp_path, handler_for(SIGHTINGS, []))

        result = await species.find_species_hotspots("Osprey", lat=45.5, lon=-122.6, radius_km=25)

        assert result["species_code"] == "osprey"
        assert result["locations"] == 2
        assert not result["nearest"]

        saved = json.loads(Path(result["path"]).read_text())
        rows = saved["data"]["sightings"]
        assert [r["location_id"] for r in rows] == ["L1", "L2"]
        assert rows[0]["observation_count"] == 2
        assert rows[0]["highest_count"] == 2
        assert not rows[1]["is_hotspot"]
        assert saved["data"]["radius_km"] == 25

    async def test_unknown_species(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        handler = handler_for(SIGHTINGS, [])
        use_fakes(monkeypatch, tmp_path, handler)

        with pytest.raises(ValueError, match="No species matches"):
            await species.find_species_hotspots("dodo")
        assert handler.requests == []
