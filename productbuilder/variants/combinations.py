"""Variant combination generation.

Expands product options into the full variant matrix. The first option
varies slowest and the last fastest; combination index ``i`` is the
position used to pair a combination with its per-variant input.
"""

import itertools
from dataclasses import dataclass, field
from typing import Sequence

from productbuilder.variants.sorting import DEFAULT_SIZE_CHART, SizeChart, smart_sort


@dataclass(frozen=True)
class Option:
    """A configurable product dimension (e.g. Size, Color).

    Attributes:
        name: Option name.
        values: Option values as entered. They are put in display order
            with ``smart_sort`` before combination.
    """

    name: str
    values: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    @classmethod
    def of(cls, name: str, values: Sequence[str]) -> "Option":
        """Create an option from any sequence of values."""
        return cls(name=name, values=tuple(values))

    def sorted_values(self, chart: SizeChart = DEFAULT_SIZE_CHART) -> list[str]:
        """Get the values in generation order."""
        return smart_sort(self.values, chart)


@dataclass(frozen=True)
class OptionValue:
    """One (option name, value) pair of a variant."""

    name: str
    value: str


@dataclass(frozen=True)
class VariantCombination:
    """One assignment of a value to every option, in option order.

    Equality of the matching key ignores pair order; the pairs
    themselves keep option order for titles and payloads.
    """

    pairs: tuple[OptionValue, ...]

    @property
    def values(self) -> list[str]:
        """Values in option order."""
        return [pair.value for pair in self.pairs]

    @property
    def title(self) -> str:
        """Display title, e.g. "M / Red"."""
        return " / ".join(self.values)

    @property
    def match_key(self) -> frozenset[tuple[str, str]]:
        """Order-insensitive key for matching against existing variants."""
        return frozenset((pair.name, pair.value) for pair in self.pairs)

    def to_option_values(self) -> list[dict[str, str]]:
        """Render as ``optionValues`` for a variant create input."""
        return [{"optionName": pair.name, "name": pair.value} for pair in self.pairs]


def generate_combinations(
    options: Sequence[Option],
    chart: SizeChart = DEFAULT_SIZE_CHART,
) -> list[VariantCombination]:
    """Compute the Cartesian product of all option values.

    Each option's values are put in display order first.

    Args:
        options: Options in display order.
        chart: Size tables used for ordering.

    Returns:
        Combinations, first option slowest-varying. No options, or any
        option without values, yields an empty list.

    Example:
        >>> combos = generate_combinations([
        ...     Option.of("Size", ["M", "S"]),
        ...     Option.of("Color", ["Red", "Blue"]),
        ... ])
        >>> [c.title for c in combos]
        ['S / Blue', 'S / Red', 'M / Blue', 'M / Red']
    """
    if not options:
        return []

    axes = [
        [OptionValue(option.name, value) for value in option.sorted_values(chart)]
        for option in options
    ]
    return [VariantCombination(pairs=tuple(pairs)) for pairs in itertools.product(*axes)]
