"""Instrument universe loading from the static stock code list."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from .market.errors import SourceUnavailable
from .market.models import to_provider_symbol

logger = logging.getLogger(__name__)

CODE_COLUMN = "Code"


class UniverseLoader:
    """Reads the ordered instrument universe from a CSV with a ``Code`` column.

    The file is re-read on every load, so editing the list takes effect on
    the next refresh without a restart.
    """

    def __init__(self, path: str | Path, suffix: str = ".JK") -> None:
        self._path = Path(path)
        self._suffix = suffix

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[str]:
        """Return provider symbols in file order.

        Raises SourceUnavailable if the file is missing, unreadable or has no
        ``Code`` column.
        """
        try:
            with self._path.open(newline="", encoding="utf-8-sig") as fh:
                reader = csv.DictReader(fh)
                if reader.fieldnames is None or CODE_COLUMN not in reader.fieldnames:
                    raise SourceUnavailable(f"{self._path}: missing '{CODE_COLUMN}' column")
                codes = [row.get(CODE_COLUMN) or "" for row in reader]
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise SourceUnavailable(f"{self._path}: {e}") from e

        symbols = [s for s in (to_provider_symbol(code, self._suffix) for code in codes) if s]
        logger.debug("Loaded %d symbols from %s", len(symbols), self._path)
        return symbols
