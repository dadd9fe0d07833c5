"""Boundary dataset loading and the caller-owned dataset cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

from .models import CountryFeature

_LOGGER = logging.getLogger("countrymap.boundaries")

ID_COLUMNS = ("id", "ID", "iso_n3", "ISO_N3", "ADM0_A3", "ISO_A3", "iso_a3")

BoundaryLoader = Callable[[Path], Sequence[CountryFeature]]


def _first_existing_column(columns: Iterable[str], candidates: Sequence[str]) -> str | None:
    existing = {col.lower(): col for col in columns}
    for candidate in candidates:
        match = existing.get(candidate.lower())
        if match:
            return match
    return None


@dataclass(frozen=True, slots=True)
class BoundaryDataset:
    source: Path
    features: tuple[CountryFeature, ...]
    _index: dict[str, CountryFeature] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_features(cls, source: Path, features: Sequence[CountryFeature]) -> BoundaryDataset:
        index: dict[str, CountryFeature] = {}
        for feature in features:
            # First occurrence wins; world-atlas carries a few duplicated ids.
            index.setdefault(feature.identifier, feature)
        return cls(source=source, features=tuple(features), _index=index)

    def find(self, identifier: str) -> CountryFeature | None:
        return self._index.get(identifier.strip())

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(sorted(self._index))


class BoundaryCache:
    """Loads each dataset source at most once for the lifetime of the cache.

    The cache belongs to the caller (a batch run, an app session) and is passed by reference
    to whatever needs boundary data; the map engine itself never sees it.
    """

    def __init__(self, loader: BoundaryLoader | None = None) -> None:
        self._loader = loader if loader is not None else load_boundary_features
        self._datasets: dict[Path, BoundaryDataset] = {}

    def get(self, source: Path) -> BoundaryDataset:
        key = Path(source).resolve()
        dataset = self._datasets.get(key)
        if dataset is None:
            features = self._loader(key)
            dataset = BoundaryDataset.from_features(key, features)
            self._datasets[key] = dataset
            _LOGGER.info("Loaded %d boundary features from %s", len(dataset.features), key)
        return dataset

    def __contains__(self, source: object) -> bool:
        if not isinstance(source, (str, Path)):
            return False
        return Path(source).resolve() in self._datasets

    def clear(self) -> None:
        self._datasets.clear()


def resolve_target_feature(
    cache: BoundaryCache,
    identifier: str,
    sources: Sequence[Path | None],
) -> CountryFeature | None:
    """Return the feature from the first source (most detailed first) that has it."""
    for source in sources:
        if source is None:
            continue
        feature = cache.get(source).find(identifier)
        if feature is not None:
            return feature
    return None


def load_boundary_features(path: Path) -> list[CountryFeature]:
    """Read a GeoJSON/TopoJSON/shapefile boundary dataset via GeoPandas."""
    if not path.exists():
        raise FileNotFoundError(f"Boundary dataset not found: {path}")
    gpd = _require_geopandas()
    frame = gpd.read_file(path)
    id_col = _first_existing_column(frame.columns, ID_COLUMNS)
    if id_col is None:
        raise ValueError(
            f"Boundary dataset {path} has no identifier column; tried: " + ", ".join(ID_COLUMNS)
        )
    mapping = _require_shapely_mapping()

    features: list[CountryFeature] = []
    for _, row in frame.iterrows():
        raw_id = row.get(id_col)
        geometry = row.get("geometry")
        if _is_missing(raw_id) or geometry is None or geometry.is_empty:
            continue
        features.append(CountryFeature(identifier=str(raw_id).strip(), geometry=mapping(geometry)))
    return features


def _require_geopandas() -> Any:
    try:
        import geopandas as gpd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("geopandas is required to read boundary datasets") from exc
    return gpd


def _require_shapely_mapping() -> Any:
    try:
        from shapely.geometry import mapping
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required to convert boundary geometries") from exc
    return mapping


def _is_missing(value: Any) -> bool:
    # pandas reports empty cells as NaN
    return value is None or (isinstance(value, float) and value != value)
