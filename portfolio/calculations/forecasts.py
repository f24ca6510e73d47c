"""
Forecast Lookups

Interest rate and growth rate forecasts are step functions over calendar
years: a value holds from its breakpoint year until the next breakpoint.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple


@dataclass
class InterestRateForecast:
    """Interest rate (basis points) taking effect from a calendar year."""

    year: int
    rate: int


@dataclass
class PropertyGrowthForecast:
    """Property growth rate (basis points per year) taking effect from a calendar year."""

    year: int
    growth_rate: int


@dataclass
class GrowthRatePeriod:
    """Growth rate applying from start_year through end_year (open-ended if None)."""

    start_year: int
    growth_rate: int
    end_year: Optional[int] = None


class StepForecast:
    """
    Sorted (year, value) breakpoints with an "effective at year" query.

    value_at(year) returns the value of the most recent breakpoint at or
    before year, or the default when the year precedes every breakpoint.
    """

    def __init__(self, breakpoints: Iterable[Tuple[int, int]] = (), default: int = 0):
        merged = {}
        for year, value in breakpoints:
            merged[int(year)] = value
        self._years: List[int] = sorted(merged)
        self._values: List[int] = [merged[year] for year in self._years]
        self.default = default

    @classmethod
    def from_rate_forecasts(
        cls, forecasts: Sequence[InterestRateForecast], default: int
    ) -> "StepForecast":
        return cls(((f.year, f.rate) for f in forecasts), default)

    @classmethod
    def from_growth_forecasts(
        cls, forecasts: Sequence[PropertyGrowthForecast], default: int
    ) -> "StepForecast":
        return cls(((f.year, f.growth_rate) for f in forecasts), default)

    @classmethod
    def from_periods(
        cls, periods: Sequence[GrowthRatePeriod], default: int = 0
    ) -> "StepForecast":
        """
        Build a forecast from bounded growth periods.

        Breakpoints sit at every start year and every end_year + 1. Each takes
        the rate of the earliest-starting period covering that year, or the
        default where no period does.
        """
        ordered = sorted(periods, key=lambda p: p.start_year)
        years = {p.start_year for p in ordered}
        years.update(p.end_year + 1 for p in ordered if p.end_year is not None)

        def covering_rate(year: int) -> int:
            for period in ordered:
                if period.start_year <= year and (
                    period.end_year is None or year <= period.end_year
                ):
                    return period.growth_rate
            return default

        return cls(((year, covering_rate(year)) for year in years), default)

    def value_at(self, year: int) -> int:
        index = bisect_right(self._years, year)
        if index == 0:
            return self.default
        return self._values[index - 1]

    def __len__(self) -> int:
        return len(self._years)

    def __repr__(self) -> str:
        points = list(zip(self._years, self._values))
        return f"StepForecast({points!r}, default={self.default!r})"
