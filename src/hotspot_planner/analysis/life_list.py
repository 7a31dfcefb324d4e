"""Build a ``LifeList`` from an eBird "My eBird Data" or life list CSV export."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable

from hotspot_planner.schemas import LifeList, Species


def _column(header: list[str], *names: str) -> int | None:
    lowered = [h.strip().lower() for h in header]
    for i, h in enumerate(lowered):
        if any(name in h for name in names):
            return i
    return None


def parse_life_list_csv(text: str, taxonomy: Iterable[Species] = ()) -> LifeList:
    """
    Species seen, matched to eBird codes through ``taxonomy``.

    The common-name column ("Common Name" or "Species") is matched first,
    then the scientific-name column. Names the taxonomy does not know are
    kept by lowercase common name so they still count as seen.

    Raises:
        ValueError: The header has no species name column.
    """
    rows = list(csv.reader(io.StringIO(text)))
    if not rows:
        return LifeList()

    header = rows[0]
    common_idx = _column(header, "common name")
    if common_idx is None:
        common_idx = next((i for i, h in enumerate(header) if h.strip().lower() == "species"), None)
    sci_idx = _column(header, "scientific name", "sci. name")
    if common_idx is None and sci_idx is None:
        msg = "Could not find species name columns in CSV header"
        raise ValueError(msg)

    by_common: dict[str, Species] = {}
    by_sci: dict[str, Species] = {}
    for species in taxonomy:
        by_common[species.common_name.lower()] = species
        by_sci[species.scientific_name.lower()] = species

    codes: set[str] = set()
    names: set[str] = set()
    for row in rows[1:]:
        common = row[common_idx].strip() if common_idx is not None and common_idx < len(row) else ""
        sci = row[sci_idx].strip() if sci_idx is not None and sci_idx < len(row) else ""
        if not common and not sci:
            continue
        match = by_common.get(common.lower()) or by_sci.get(sci.lower())
        if match is not None:
            codes.add(match.species_code)
            names.add(match.common_name.lower())
        else:
            names.add((common or sci).lower())

    return LifeList(codes=frozenset(codes), names=frozenset(names))
