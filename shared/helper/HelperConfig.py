"""Environment-backed settings of the markdown preview bridge."""

import logging
import os
from typing import Any


class HelperConfig:
    """
    Typed access to environment variables plus the shared application logger.

    Keys are case-insensitive and an empty value counts as unset. Every getter
    returns its default for an unset key and raises ValueError when the key is
    unset and no default was given.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def get_logger(self) -> logging.Logger:
        return self._logger

    def _lookup(self, key: str, default: Any) -> tuple[str | None, Any]:
        """Returns (stripped raw value, None) if set, else (None, default)."""
        raw = os.getenv(key.upper())
        if raw is not None and raw.strip():
            return raw.strip(), None
        if default is None:
            raise ValueError(f"Environment variable '{key.upper()}' is not set.")
        return None, default

    def get_string_val(self, key: str, default: str | None = None) -> str:
        raw, fallback = self._lookup(key, default)
        return raw if raw is not None else fallback

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Reads an int, or a float when the value contains a decimal point.

        Raises:
            ValueError: If unset without default, or not a number.
        """
        raw, fallback = self._lookup(key, default)
        if raw is None:
            return fallback
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """True for true, 1 and yes in any case, False for any other value."""
        raw, fallback = self._lookup(key, default)
        if raw is None:
            return fallback
        return raw.lower() in ("true", "1", "yes")

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Reads a bracketed list such as "[a,b,c]", casting every element to element_type.

        Raises:
            ValueError: If unset without default, not bracketed, or an element fails the cast.
        """
        raw, fallback = self._lookup(key, default)
        if raw is None:
            return fallback
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ValueError(f"Environment variable '{key.upper()}' must have the format '[a{separator}b{separator}...]', got '{raw}'.")
        try:
            return [element_type(part.strip()) for part in raw[1:-1].split(separator) if part.strip()]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key.upper()}' has an element that is not {element_type.__name__}: {e}")
