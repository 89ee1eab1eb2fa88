"""Domain-aware ordering of option values.

Classifies a whole set of option values (clothing sizes, numeric
sizes, shoe sizes or free text) and sorts it with the matching
comparator. Variant titles and combination indices are derived from
this order, so every caller must sort through ``smart_sort``.
"""

import json
import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Any, Iterable

# ============================================================================
# Size Tables
# ============================================================================

CLOTHING_SIZE_ORDER: tuple[str, ...] = (
    "XXS", "XS", "EXTRA SMALL", "X-SMALL", "XSMALL",
    "S", "SMALL",
    "M", "MEDIUM", "MED",
    "L", "LARGE", "LG",
    "XL", "X-LARGE", "XLARGE", "EXTRA LARGE",
    "XXL", "XX-LARGE", "XXLARGE", "EXTRA EXTRA LARGE",
    "XXXL", "3XL", "XXX-LARGE", "XXXLARGE",
    "4XL", "5XL",
)

CLOTHING_SIZE_PATTERNS: tuple[str, ...] = (
    r"^(XXS|XS|S|M|L|XL|XXL|XXXL|[0-9]+XL)$",
    r"^(EXTRA\s+SMALL|SMALL|MEDIUM|LARGE|EXTRA\s+LARGE)$",
)

NUMERIC_SIZES: tuple[str, ...] = tuple(str(n) for n in range(0, 41, 2))

SHOE_SIZE_RANGE: tuple[float, float] = (3.0, 20.0)

_NUMBER_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")
_DIGITS_RE = re.compile(r"([0-9]+)")


class SizeKind(str, Enum):
    """Classification of a complete set of option values."""

    CLOTHING = "clothing"
    NUMERIC = "numeric"
    SHOE = "shoe"
    TEXT = "text"


@dataclass(frozen=True)
class SizeChart:
    """Size tables driving classification.

    Attributes:
        clothing_order: Canonical clothing size order (upper case).
        clothing_patterns: Case-insensitive patterns also accepted as
            clothing sizes.
        numeric_sizes: Numeric sizes recognised without parsing.
        shoe_range: Inclusive range of shoe sizes.
    """

    clothing_order: tuple[str, ...] = CLOTHING_SIZE_ORDER
    clothing_patterns: tuple[str, ...] = CLOTHING_SIZE_PATTERNS
    numeric_sizes: tuple[str, ...] = NUMERIC_SIZES
    shoe_range: tuple[float, float] = SHOE_SIZE_RANGE

    @cached_property
    def _clothing_index(self) -> dict[str, int]:
        index: dict[str, int] = {}
        for position, size in enumerate(self.clothing_order):
            index.setdefault(size.upper(), position)
        return index

    @cached_property
    def _compiled_patterns(self) -> tuple[re.Pattern[str], ...]:
        return tuple(re.compile(p, re.IGNORECASE) for p in self.clothing_patterns)

    def clothing_position(self, value: str) -> int | None:
        """Get the position of a value in the clothing order, if listed."""
        return self._clothing_index.get(value.upper())

    def is_clothing_size(self, value: str) -> bool:
        """Check if a single value looks like a clothing size."""
        if self.clothing_position(value) is not None:
            return True
        return any(p.match(value) for p in self._compiled_patterns)

    def is_numeric_size(self, value: str) -> bool:
        """Check if a single value is a plain number or a listed numeric size."""
        return bool(_NUMBER_RE.match(value)) or value in self.numeric_sizes

    def is_shoe_size(self, value: str) -> bool:
        """Check if a single value is a number inside the shoe range."""
        if not _NUMBER_RE.match(value):
            return False
        low, high = self.shoe_range
        return low <= float(value) <= high

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SizeChart":
        """Create a chart, keeping defaults for omitted tables."""
        defaults = cls()
        return cls(
            clothing_order=tuple(
                s.upper() for s in data.get("clothing_order", defaults.clothing_order)
            ),
            clothing_patterns=tuple(data.get("clothing_patterns", defaults.clothing_patterns)),
            numeric_sizes=tuple(str(s) for s in data.get("numeric_sizes", defaults.numeric_sizes)),
            shoe_range=tuple(data.get("shoe_range", defaults.shoe_range)),  # type: ignore[arg-type]
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "SizeChart":
        """Load a chart from a JSON file.

        Args:
            path: JSON file with any of the ``SizeChart`` attributes.

        Returns:
            SizeChart with file tables overriding defaults.
        """
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


DEFAULT_SIZE_CHART = SizeChart()


# ============================================================================
# Classification
# ============================================================================


def classify_values(values: Iterable[str], chart: SizeChart = DEFAULT_SIZE_CHART) -> SizeKind:
    """Classify a whole set of option values.

    Clothing sizes win over numbers. Numeric sets that sit entirely
    inside the shoe range are reported as shoe sizes; both sort the
    same way.

    Args:
        values: Option values.
        chart: Size tables.

    Returns:
        The set's SizeKind.
    """
    values = list(values)

    if all(chart.is_clothing_size(v) for v in values):
        return SizeKind.CLOTHING

    if all(chart.is_numeric_size(v) for v in values):
        if all(chart.is_shoe_size(v) for v in values):
            return SizeKind.SHOE
        return SizeKind.NUMERIC

    return SizeKind.TEXT


# ============================================================================
# Sorting
# ============================================================================


def collation_key(value: str) -> tuple:
    """Sort key approximating locale-aware, digit-aware comparison.

    Compares case- and accent-insensitively with embedded numbers
    compared by value ("Item 9" before "Item 10"); lower case sorts
    first among otherwise equal strings.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()
    chunks = tuple(
        (0, int(chunk), "") if _DIGITS_RE.fullmatch(chunk) else (1, 0, chunk)
        for chunk in _DIGITS_RE.split(base)
        if chunk
    )
    return (chunks, value.swapcase())


def _number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return float("inf")


def smart_sort(values: Iterable[str], chart: SizeChart = DEFAULT_SIZE_CHART) -> list[str]:
    """Sort option values in their canonical display order.

    Args:
        values: Option values in any order.
        chart: Size tables.

    Returns:
        New list in canonical order.

    Example:
        >>> smart_sort(["L", "S", "XL", "M"])
        ['S', 'M', 'L', 'XL']
        >>> smart_sort(["10", "2", "8"])
        ['2', '8', '10']
    """
    values = list(values)
    kind = classify_values(values, chart)

    if kind is SizeKind.CLOTHING:
        unlisted = len(chart.clothing_order)

        def clothing_key(value: str) -> tuple:
            position = chart.clothing_position(value)
            return (unlisted if position is None else position, collation_key(value))

        return sorted(values, key=clothing_key)

    if kind in (SizeKind.NUMERIC, SizeKind.SHOE):
        return sorted(values, key=_number)

    return sorted(values, key=collation_key)
