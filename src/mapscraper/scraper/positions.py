"""Reading query points from a positions file.

The file is a JSON list of named points::

    [
        {"name": "Cisaat", "position": "@-6.902101,106.8871728,13z"},
        {"name": "Cikole", "position": "@-6.8890102,106.873541,13z"}
    ]

``search_term``/``coordinate_zoom_token`` are accepted as key names too.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from mapscraper.utils.exceptions import PositionFileError
from mapscraper.utils.logger import get_logger

from .models import LocationQuery

logger = get_logger(__name__)

NAME_KEYS = ('name', 'search_term')
POSITION_KEYS = ('position', 'coordinate_zoom_token')


def _pick(entry: dict, keys: tuple[str, ...]):
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def get_position(file_path: Path | str) -> list[LocationQuery]:
    """Read the ordered list of query points.

    Args:
        file_path: Path to the positions JSON file

    Returns:
        Query points in file order

    Raises:
        PositionFileError: If the file is missing or an entry is malformed
    """
    path = Path(file_path)
    if not path.exists():
        raise PositionFileError("Positions file not found", path=str(path))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise PositionFileError(f"Malformed JSON: {e}", path=str(path)) from e

    if not isinstance(data, list):
        raise PositionFileError("Expected a JSON list of positions", path=str(path))

    queries = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise PositionFileError(f"Entry {index} is not an object", path=str(path))
        try:
            queries.append(
                LocationQuery(
                    search_term=_pick(entry, NAME_KEYS) or "",
                    coordinate_zoom_token=_pick(entry, POSITION_KEYS),
                )
            )
        except ValidationError as e:
            raise PositionFileError(f"Entry {index} is invalid: {e}", path=str(path)) from e

    logger.info(f"Loaded {len(queries)} positions from {path}")
    return queries
