"""
Custom exception hierarchy for mapscraper.

Provides a structured exception hierarchy for different error scenarios:
- AppException: Base for all application errors
- ConfigError: Configuration-related errors
- ScraperError: Browser navigation and page structure errors
- StorageError: Result persistence errors
- ValidationError: Input validation errors

Each exception includes:
- Descriptive message
- Optional error code for programmatic handling
- Optional context dictionary for debugging

Example:
    >>> from mapscraper.utils.exceptions import NavigationError
    >>> raise NavigationError("Failed to open search page", url=url)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# ============================================
# Base Exception
# ============================================


class AppException(Exception):
    """
    Base exception for all mapscraper errors.

    Attributes:
        message: Human-readable error description.
        code: Optional error code for programmatic handling.
        context: Optional dictionary with debugging context.

    Example:
        >>> try:
        ...     raise AppException("Something went wrong", code="APP_001")
        ... except AppException as e:
        ...     print(f"Error {e.code}: {e.message}")
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            code: Optional error code (e.g., "CONFIG_001").
            context: Optional dict with additional debugging info.
        """
        self.message = message
        self.code = code or self._default_code()
        self.context = context or {}
        super().__init__(self.message)

    def _default_code(self) -> str:
        """Generate default error code from class name."""
        # CamelCase -> UPPER_SNAKE_CASE
        name = self.__class__.__name__
        code = ""
        for i, char in enumerate(name):
            if char.isupper() and i > 0:
                code += "_"
            code += char.upper()
        return code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }


# ============================================
# Configuration Errors
# ============================================


class ConfigError(AppException):
    """
    Base exception for configuration-related errors.

    Raised when there are issues with:
    - Loading configuration files
    - Parsing YAML
    - Reading environment overrides
    """

    pass


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """
    Raised when an explicitly requested configuration file is missing.

    Example:
        >>> raise ConfigFileNotFoundError(path="/path/to/config.yaml")
    """

    def __init__(
        self,
        message: str = "Configuration file not found",
        path: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, code="CONFIG_FILE_NOT_FOUND", context=context, **kwargs)


class ConfigurationError(ConfigError):
    """
    Raised when configuration is invalid or cannot be parsed.

    Example:
        >>> raise ConfigurationError(
        ...     "MAPSCRAPER_MAX_SCROLLS must be an integer",
        ...     context={"value": "many"}
        ... )
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        **kwargs,
    ) -> None:
        super().__init__(message, code="CONFIG_INVALID", **kwargs)


# ============================================
# Scraper Errors
# ============================================


class ScraperError(AppException):
    """
    Base exception for scraping errors.

    Raised when a query point cannot be processed:
    - Navigation to the search page fails
    - The result feed never appears
    - The page structure cannot be read
    """

    pass


class NavigationError(ScraperError):
    """
    Raised when the browser cannot open a search page.

    Example:
        >>> raise NavigationError(
        ...     "HTTP 429 on search page",
        ...     url="https://www.google.com/maps/search/Toko/@-6.9,106.9,13z",
        ...     status_code=429
        ... )
    """

    def __init__(
        self,
        message: str = "Navigation failed",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if url:
            context["url"] = url
        if status_code:
            context["status_code"] = status_code
        super().__init__(message, code="NAVIGATION_ERROR", context=context, **kwargs)


class FeedNotFoundError(ScraperError):
    """Raised when the result feed container never attaches to the page."""

    def __init__(
        self,
        message: str = "Result feed not found",
        selector: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if selector:
            context["selector"] = selector
        if url:
            context["url"] = url
        super().__init__(message, code="FEED_NOT_FOUND", context=context, **kwargs)


class PageParsingError(ScraperError):
    """
    Raised when the detail panel content cannot be read.

    Example:
        >>> raise PageParsingError(
        ...     "Detail panel vanished after wait",
        ...     selector="div[role='main']"
        ... )
    """

    def __init__(
        self,
        message: str = "Failed to parse page content",
        url: Optional[str] = None,
        selector: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if url:
            context["url"] = url
        if selector:
            context["selector"] = selector
        super().__init__(message, code="PAGE_PARSE", context=context, **kwargs)


# ============================================
# Storage Errors
# ============================================


class StorageError(AppException):
    """Raised when stored results cannot be read back."""

    def __init__(
        self,
        message: str = "Failed to read stored results",
        path: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, code="STORAGE_ERROR", context=context, **kwargs)


# ============================================
# Validation Errors
# ============================================


class ValidationError(AppException):
    """
    Base exception for input validation errors.

    Raised when user input or data files fail validation.
    """

    pass


class PositionFileError(ValidationError):
    """
    Raised when the query positions file is missing or malformed.

    Example:
        >>> raise PositionFileError(
        ...     "Entry 3 has no position",
        ...     path="data/positions.json"
        ... )
    """

    def __init__(
        self,
        message: str = "Invalid positions file",
        path: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, code="POSITION_FILE", context=context, **kwargs)
