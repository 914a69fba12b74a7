"""mapscraper - location records from map search result feeds."""

__version__ = "0.1.0"
