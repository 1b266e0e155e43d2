"""Cache of dated, ranged and tax-year views derived from one full analysis."""

from datetime import date

from household_ledger.analysis.analysis import Analysis
from household_ledger.domain.value_objects import DateRange
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)


class AnalysisManager:
    """Derives views of a full analysis on demand and keeps them.

    Derived analyses are independent of the source and of each other, so a
    cached view stays valid for as long as the source is unchanged.
    """

    def __init__(self, analysis: Analysis) -> None:
        self._analysis = analysis
        self._dated: dict[date, Analysis] = {}
        self._ranged: dict[DateRange, Analysis] = {}

    @property
    def analysis(self) -> Analysis:
        return self._analysis

    def get_dated_analysis(self, on_date: date) -> Analysis:
        """Analysis of everything up to and including on_date."""
        view = self._dated.get(on_date)
        if view is None:
            view = Analysis.dated(self._analysis, on_date)
            self._dated[on_date] = view
            logger.info("dated_analysis_derived", on_date=on_date.isoformat())
        return view

    def get_ranged_analysis(self, date_range: DateRange) -> Analysis:
        """Analysis of the flows within date_range."""
        view = self._ranged.get(date_range)
        if view is None:
            view = Analysis.ranged(self._analysis, date_range)
            self._ranged[date_range] = view
            logger.info(
                "ranged_analysis_derived",
                start=date_range.start.isoformat(),
                end=date_range.end.isoformat(),
            )
        return view

    def get_tax_year_analysis(self, year: int) -> Analysis:
        """Ranged analysis of the tax year starting in the given calendar year."""
        settings = self._analysis.settings
        date_range = DateRange.for_tax_year(
            year, settings.tax_year_start_month, settings.tax_year_start_day
        )
        return self.get_ranged_analysis(date_range)

    def clear(self) -> None:
        self._dated.clear()
        self._ranged.clear()
