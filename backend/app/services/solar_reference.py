import logging
from functools import lru_cache
from pathlib import Path

from app.config import settings
from engine.solar.reference_profiles import ReferenceProfileLibrary
from engine.weather.pvgis_client import REFERENCE_YEAR, fetch_reference_grid

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _load_library(path: str, stamp: tuple[int, int, int] | None) -> ReferenceProfileLibrary:
    return ReferenceProfileLibrary.from_json(path)


def get_reference_library(path: str | None = None) -> ReferenceProfileLibrary:
    """Reference dataset at ``path`` (default: settings).

    The parsed dataset is cached per file identity and modification time, so
    a dataset rewritten by another worker is picked up on the next call.
    """
    target = Path(path or settings.solar_profiles_path)
    try:
        st = target.stat()
        stamp: tuple[int, int, int] | None = (st.st_ino, st.st_mtime_ns, st.st_size)
    except FileNotFoundError:
        stamp = None
    return _load_library(str(target), stamp)


def clear_reference_cache() -> None:
    _load_library.cache_clear()


async def build_reference_dataset(
    lat: float,
    lon: float,
    path: str | None = None,
    year: int = REFERENCE_YEAR,
) -> int:
    """Fetch PVGIS curves for a site and merge them into the JSON dataset.

    Existing sites in the dataset are kept; curves for this site are
    replaced.  Returns the number of curves written.
    """
    target = Path(path or settings.solar_profiles_path)
    curves = await fetch_reference_grid(lat, lon, year=year, base_url=settings.pvgis_base_url)

    library = ReferenceProfileLibrary.from_json(target)
    for (azimuth, tilt), curve in curves.items():
        library.add_profile(lat, lon, azimuth, tilt, curve)
    library.to_json(target)
    clear_reference_cache()

    logger.info("Wrote %d reference curves for %.4f,%.4f to %s", len(curves), lat, lon, target)
    return len(curves)
