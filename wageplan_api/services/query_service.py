"""Read-only queries and aggregations over the employee snapshot.

Every method reads the cache's current snapshot once and is a pure function
of that snapshot and its arguments. Ordering comes from LEVELS, RATINGS or
explicit sort keys, never from row insertion order.
"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

import polars as pl

from ..config import AppSettings
from ..constants import LEVELS, RATINGS, UNRATED_LABEL, PerformanceRating
from ..exceptions import NotFoundError, WagePlanError
from ..models.dashboard import (
    BudgetOverview,
    DashboardSummary,
    DepartmentCount,
    IndustryComparison,
    LevelCount,
    LevelStatistics,
    MetadataResponse,
    RatingCount,
    RosterSummary,
)
from ..models.employee import EmployeeQuery, EmployeeRecord, EmployeeSearchResult
from ..models.wage import (
    BudgetProjection,
    EmployeeSalaryCalculation,
    RateProposal,
    RateRecommendation,
)
from . import wage_calculator
from .cache_service import EmployeeDataCache, EmployeeSnapshot

logger = logging.getLogger(__name__)

Weights = Mapping[PerformanceRating, float]


def default_recommendation(settings: AppSettings) -> RateRecommendation:
    """Recommendation used when the workbook has no AI settings sheet."""
    base_up = settings.default_base_up_percentage
    merit = settings.default_merit_increase_percentage
    return RateRecommendation(
        base_up_percentage=base_up,
        merit_increase_percentage=merit,
        total_percentage=base_up + merit,
        min_range=settings.default_min_range,
        max_range=settings.default_max_range,
    )


class EmployeeQueryService:
    """Search, statistics and dashboard rollups for the cached roster."""

    def __init__(self, cache: EmployeeDataCache, settings: Optional[AppSettings] = None):
        self.cache = cache
        self.settings = settings or cache.settings

    def _weights(self, weights: Optional[Weights]) -> Weights:
        return weights if weights is not None else self.settings.performance_weights

    def _proposal(self, snapshot: EmployeeSnapshot, proposal: Optional[RateProposal]) -> RateProposal:
        if proposal is not None:
            return proposal
        return self._recommendation(snapshot).to_proposal()

    def _recommendation(self, snapshot: EmployeeSnapshot) -> RateRecommendation:
        return snapshot.recommendation or default_recommendation(self.settings)

    def resolve_proposal(
        self,
        base_up_percentage: Optional[float] = None,
        merit_increase_percentage: Optional[float] = None,
    ) -> RateProposal:
        """Fill omitted percentages from the current recommendation."""
        if base_up_percentage is not None and merit_increase_percentage is not None:
            return RateProposal(
                base_up_percentage=base_up_percentage,
                merit_increase_percentage=merit_increase_percentage,
            )
        recommended = self._recommendation(self.cache.get_snapshot())
        return RateProposal(
            base_up_percentage=(
                recommended.base_up_percentage if base_up_percentage is None else base_up_percentage
            ),
            merit_increase_percentage=(
                recommended.merit_increase_percentage
                if merit_increase_percentage is None
                else merit_increase_percentage
            ),
        )

    # -------------------------------------------------------------------------
    # Lookup and search
    # -------------------------------------------------------------------------

    def search_employees(self, query: EmployeeQuery) -> EmployeeSearchResult:
        """
        Filter and paginate the roster.

        Filters are combined with AND. A page past the end returns an empty
        list with the full filtered total.
        """
        snapshot = self.cache.get_snapshot()
        needle = query.search.strip().lower() if query.search else None

        matches: List[EmployeeRecord] = []
        for record in snapshot.records:
            if query.level is not None and record.level != query.level:
                continue
            if query.department is not None and record.department != query.department:
                continue
            if needle and needle not in record.name.lower() and needle not in record.employee_id.lower():
                continue
            matches.append(record)

        total = len(matches)
        start = (query.page - 1) * query.limit
        return EmployeeSearchResult(
            employees=matches[start:start + query.limit],
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=(total + query.limit - 1) // query.limit,
        )

    def get_employee(self, employee_id: str) -> EmployeeRecord:
        """
        Raises:
            NotFoundError: If the id is not in the current snapshot
        """
        record = self.cache.get_snapshot().by_id.get(employee_id)
        if record is None:
            raise NotFoundError(employee_id)
        return record

    # -------------------------------------------------------------------------
    # Aggregations
    # -------------------------------------------------------------------------

    def _level_statistics(
        self, snapshot: EmployeeSnapshot, proposal: RateProposal, weights: Weights
    ) -> List[LevelStatistics]:
        weight_map = {rating.value: float(w) for rating, w in weights.items()}
        frame = snapshot.frame.with_columns(
            (
                pl.col("performance_rating")
                .replace_strict(weight_map, default=1.0, return_dtype=pl.Float64)
                .fill_null(1.0)
                * proposal.merit_increase_percentage
            ).alias("weighted_merit")
        )
        grouped = frame.group_by("level").agg(
            pl.len().alias("employee_count"),
            pl.col("current_salary").sum().alias("total_salary"),
            pl.col("current_salary").mean().alias("mean_salary"),
            pl.col("current_salary").min().alias("min_salary"),
            pl.col("current_salary").max().alias("max_salary"),
            pl.col("weighted_merit").mean().alias("average_merit"),
        )
        rows = {row["level"]: row for row in grouped.iter_rows(named=True)}

        stats: List[LevelStatistics] = []
        for level in LEVELS:
            row = rows.get(level.value)
            if row is None:
                continue
            average_merit = float(row["average_merit"])
            stats.append(
                LevelStatistics(
                    level=level,
                    employee_count=row["employee_count"],
                    average_salary=wage_calculator.round_half_away_from_zero(row["mean_salary"]),
                    total_salary=row["total_salary"],
                    min_salary=row["min_salary"],
                    max_salary=row["max_salary"],
                    average_base_up_percentage=proposal.base_up_percentage,
                    average_merit_percentage=average_merit,
                    average_total_percentage=proposal.base_up_percentage + average_merit,
                )
            )
        return stats

    def get_level_statistics(
        self, proposal: Optional[RateProposal] = None, weights: Optional[Weights] = None
    ) -> List[LevelStatistics]:
        """Per-level salary and increase statistics in level order."""
        snapshot = self.cache.get_snapshot()
        return self._level_statistics(snapshot, self._proposal(snapshot, proposal), self._weights(weights))

    @staticmethod
    def _department_distribution(snapshot: EmployeeSnapshot) -> List[DepartmentCount]:
        grouped = (
            snapshot.frame.group_by("department")
            .agg(pl.len().alias("count"))
            .sort(["count", "department"], descending=[True, False])
        )
        return [DepartmentCount(**row) for row in grouped.iter_rows(named=True)]

    def get_department_distribution(self) -> List[DepartmentCount]:
        """Headcount per department, largest first then by name."""
        return self._department_distribution(self.cache.get_snapshot())

    @staticmethod
    def _performance_distribution(snapshot: EmployeeSnapshot) -> List[RatingCount]:
        counts: Dict[Optional[str], int] = dict(
            snapshot.frame.group_by("performance_rating").agg(pl.len().alias("count")).iter_rows()
        )
        distribution = [RatingCount(rating=r.value, count=counts.get(r.value, 0)) for r in RATINGS]
        if counts.get(None):
            distribution.append(RatingCount(rating=UNRATED_LABEL, count=counts[None]))
        return distribution

    def get_performance_distribution(self) -> List[RatingCount]:
        """Headcount per rating in S, A, B, C order, plus unrated when present."""
        return self._performance_distribution(self.cache.get_snapshot())

    # -------------------------------------------------------------------------
    # Benchmarks
    # -------------------------------------------------------------------------

    def competitor_rate_with_source(self) -> Tuple[float, str]:
        """Competitor rate and where it came from ('workbook' or 'default')."""
        try:
            snapshot = self.cache.get_snapshot()
        except WagePlanError as e:
            logger.warning(f"Using default competitor rate; employee data unavailable: {e.message}")
            return self.settings.default_competitor_rate, "default"
        except Exception as e:
            logger.exception(f"Using default competitor rate; loading employee data failed: {e}")
            return self.settings.default_competitor_rate, "default"
        if snapshot.competitor_rate is None:
            return self.settings.default_competitor_rate, "default"
        return snapshot.competitor_rate, "workbook"

    def get_competitor_increase_rate(self) -> float:
        """Competitor increase rate; never raises."""
        return self.competitor_rate_with_source()[0]

    def get_industry_comparison(self) -> IndustryComparison:
        snapshot = self.cache.get_snapshot()
        return self._industry_comparison(snapshot)

    def _industry_comparison(self, snapshot: EmployeeSnapshot) -> IndustryComparison:
        competitor = snapshot.competitor_rate
        return IndustryComparison(
            our_company=self._recommendation(snapshot).total_percentage,
            competitor=competitor if competitor is not None else self.settings.default_competitor_rate,
            industry_average=self.settings.industry_average_rate,
        )

    def get_rate_recommendation(self) -> RateRecommendation:
        return self._recommendation(self.cache.get_snapshot())

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    def get_dashboard_summary(self) -> DashboardSummary:
        """All overview figures computed from one snapshot."""
        snapshot = self.cache.get_snapshot()
        recommendation = self._recommendation(snapshot)
        proposal = recommendation.to_proposal()
        weights = self._weights(None)

        calcs = [
            wage_calculator.calculate_employee_salary(record, proposal, weights)
            for record in snapshot.records
        ]
        budget = wage_calculator.calculate_total_budget(calcs)
        base_up_budget = sum(c.base_up_amount for c in calcs)

        headcount = snapshot.employee_count
        payroll = sum(r.current_salary for r in snapshot.records)
        average = wage_calculator.round_half_away_from_zero(payroll / headcount) if headcount else 0

        return DashboardSummary(
            summary=RosterSummary(
                total_employees=headcount,
                average_salary=average,
                total_payroll=payroll,
                last_updated=snapshot.loaded_at,
            ),
            recommendation=recommendation,
            budget=BudgetOverview(
                total_budget=budget.difference,
                base_up_budget=base_up_budget,
                merit_budget=budget.difference - base_up_budget,
                used_budget=0,
                remaining_budget=budget.difference,
            ),
            level_statistics=self._level_statistics(snapshot, proposal, weights),
            department_distribution=self._department_distribution(snapshot),
            performance_distribution=self._performance_distribution(snapshot),
            industry_comparison=self._industry_comparison(snapshot),
        )

    def get_metadata(self) -> MetadataResponse:
        """Filter vocabulary and distributions for the roster views."""
        snapshot = self.cache.get_snapshot()
        level_counts = dict(snapshot.frame.group_by("level").agg(pl.len()).iter_rows())
        return MetadataResponse(
            departments=sorted({r.department for r in snapshot.records if r.department}),
            bands=sorted({r.band for r in snapshot.records if r.band}),
            levels=[level.value for level in LEVELS],
            ratings=[rating.value for rating in RATINGS],
            level_distribution=[
                LevelCount(level=level, count=level_counts.get(level.value, 0)) for level in LEVELS
            ],
            rating_distribution=self._performance_distribution(snapshot),
        )

    # -------------------------------------------------------------------------
    # Calculations
    # -------------------------------------------------------------------------

    def calculate_employee_salary(
        self,
        employee_id: str,
        proposal: Optional[RateProposal] = None,
        weights: Optional[Weights] = None,
    ) -> EmployeeSalaryCalculation:
        """Suggested salary for one employee; defaults to the recommendation."""
        snapshot = self.cache.get_snapshot()
        record = snapshot.by_id.get(employee_id)
        if record is None:
            raise NotFoundError(employee_id)
        return wage_calculator.calculate_employee_salary(
            record, self._proposal(snapshot, proposal), self._weights(weights)
        )

    def project_budget(
        self, proposal: Optional[RateProposal] = None, weights: Optional[Weights] = None
    ) -> BudgetProjection:
        """Organization and per-level budget for a proposal."""
        snapshot = self.cache.get_snapshot()
        return wage_calculator.project_budget(
            snapshot.records, self._proposal(snapshot, proposal), self._weights(weights)
        )
