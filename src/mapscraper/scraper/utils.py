"""Helper utilities for scraping operations."""

import re
from urllib.parse import quote

# Characters the browser's encodeURI leaves untouched
ENCODE_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def sanitize_filename(name: str, max_length: int = 255) -> str:
    """Remove invalid characters from filename and truncate.

    Args:
        name: Original filename
        max_length: Maximum filename length

    Returns:
        Sanitized filename safe for filesystem
    """
    # Remove invalid characters
    sanitized = re.sub(r'[<>:"/\\|?*,@]', '', name)

    # Replace spaces with underscores
    sanitized = sanitized.replace(' ', '_')

    # Remove multiple consecutive underscores
    sanitized = re.sub(r'_+', '_', sanitized)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    sanitized = sanitized.strip('_')

    return sanitized if sanitized else 'unnamed'


def build_url(search_term: str, area: str, coordinate_zoom_token: str,
              base_url: str = "https://www.google.com/maps/search") -> str:
    """Build the map search URL for one query point.

    Only the human-readable phrase is percent-encoded; the coordinate
    token is appended verbatim.

    Args:
        search_term: Search phrase, e.g. "kedai kopi"
        area: Area qualifier appended to the phrase, e.g. ", Cikole" ("" for none)
        coordinate_zoom_token: Raw '@lat,lng,zoomz' token
        base_url: Search base path without trailing slash

    Returns:
        Search URL

    Example:
        >>> build_url("kopi", ", Area", "@-6.8,106.8,13z")
        'https://www.google.com/maps/search/kopi,%20Area/@-6.8,106.8,13z'
    """
    phrase = quote(search_term + area, safe=ENCODE_URI_SAFE)
    return f"{base_url.rstrip('/')}/{phrase}/{coordinate_zoom_token}"


def area_qualifier(point_name: str) -> str:
    """Area suffix for a named query point (", Cisaat"), empty for no name."""
    point_name = point_name.strip()
    return f", {point_name}" if point_name else ""


def coordinate_token_slug(coordinate_zoom_token: str) -> str:
    """Filename-safe form of a coordinate token.

    Example:
        >>> coordinate_token_slug("@-6.902101,106.8871728,13z")
        '-6.902101_106.8871728_13z'
    """
    return coordinate_zoom_token.strip().lstrip('@').replace(',', '_')
