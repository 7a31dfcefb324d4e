"""Tests for life list CSV import."""

from __future__ import annotations

import pytest

from hotspot_planner.analysis.life_list import parse_life_list_csv
from hotspot_planner.schemas import Species

TAXONOMY = [
    Species(
        species_code="amerob", common_name="American Robin", scientific_name="Turdus migratorius"
    ),
    Species(species_code="osprey", common_name="Osprey", scientific_name="Pandion haliaetus"),
]


class TestParseLifeListCsv:
    """Test matching exported rows to eBird species codes."""

    def test_my_ebird_data_export(self) -> None:
        text = (
            "Submission ID,Common Name,Scientific Name,Count\n"
            "S1,American Robin,Turdus migratorius,3\n"
            'S2,"Osprey",Pandion haliaetus,1\n'
            "S3,American Robin,Turdus migratorius,1\n"
        )
        life_list = parse_life_list_csv(text, TAXONOMY)
        assert life_list.codes == frozenset({"amerob", "osprey"})
        assert life_list.has_seen("osprey", "Osprey")

    def test_scientific_name_fallback(self) -> None:
        text = "Species,Sci. Name\n,Pandion haliaetus\n"
        assert parse_life_list_csv(text, TAXONOMY).codes == frozenset({"osprey"})

    def test_unknown_species_kept_by_name(self) -> None:
        text = "Common Name\nMoa\n"
        life_list = parse_life_list_csv(text, TAXONOMY)
        assert life_list.codes == frozenset()
        assert life_list.has_seen("user_moa", "Moa")

    def test_blank_rows_skipped(self) -> None:
        text = "Common Name,Scientific Name\n\n,\nOsprey,\n"
        assert parse_life_list_csv(text, TAXONOMY).codes == frozenset({"osprey"})

    def test_empty_file(self) -> None:
        assert parse_life_list_csv("").is_empty

    def test_missing_name_columns(self) -> None:
        with pytest.raises(ValueError, match="species name columns"):
            parse_life_list_csv("Date,Count\n2026-05-01,3\n", TAXONOMY)
