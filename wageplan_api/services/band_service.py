"""Band x level matrix construction.

Groups the roster snapshot by job family and level, computes salary
distribution statistics and competitiveness against configured market
medians, and applies slider adjustments to produce cells for the constraint
engine.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import polars as pl

from ..config import AppSettings, get_settings
from ..constants import LEVEL_ORDER, LEVELS, Level
from ..models.bands import BandLevelCell, BandMatrix, BandSummary, SliderAdjustment
from .cache_service import EmployeeSnapshot
from .constraint_service import cell_budget_impact
from .query_service import default_recommendation
from .wage_calculator import round_half_away_from_zero

logger = logging.getLogger(__name__)


def order_bands(found: Iterable[str], configured: Sequence[str]) -> List[str]:
    """Configured bands first in configured order, then unknown bands by name."""
    found_set = set(found)
    known = [band for band in configured if band in found_set]
    unknown = sorted(found_set - set(configured))
    return known + unknown


class BandService:
    """Builds and adjusts the pay band matrix."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or get_settings()

    def _indices(self, level: Level, mean: float) -> Tuple[Optional[float], Optional[int], Optional[int]]:
        median = self.settings.market_medians.get(level)
        if not median:
            return None, None, None
        competitiveness = mean / median * 100
        return (
            competitiveness,
            round_half_away_from_zero(competitiveness),
            round_half_away_from_zero(competitiveness * self.settings.ca_index_factor),
        )

    def build_matrix(self, snapshot: EmployeeSnapshot, base_up_rate: Optional[float] = None) -> BandMatrix:
        """
        Build the band x level matrix from a snapshot.

        Args:
            snapshot: Published roster snapshot
            base_up_rate: Rate for every cell (%); the recommendation's base-up by default

        Returns:
            BandMatrix with cells for every populated (band, level) pair
        """
        if base_up_rate is None:
            recommendation = snapshot.recommendation or default_recommendation(self.settings)
            base_up_rate = recommendation.base_up_percentage

        salary = pl.col("current_salary")
        grouped = snapshot.frame.group_by(["band", "level"]).agg(
            pl.len().alias("headcount"),
            salary.mean().alias("mean"),
            salary.min().alias("min"),
            salary.quantile(0.25, interpolation="linear").alias("q1"),
            salary.median().alias("median"),
            salary.quantile(0.75, interpolation="linear").alias("q3"),
            salary.max().alias("max"),
        )
        rows = {(row["band"], row["level"]): row for row in grouped.iter_rows(named=True)}
        bands = order_bands((band for band, _ in rows), self.settings.bands)

        cells: List[BandLevelCell] = []
        for band in bands:
            for level in LEVELS:
                row = rows.get((band, level.value))
                if row is None:
                    continue
                mean = float(row["mean"])
                competitiveness, sbl, ca = self._indices(level, mean)
                cells.append(
                    BandLevelCell(
                        band=band,
                        level=level,
                        headcount=row["headcount"],
                        mean_base_pay=mean,
                        base_up_rate=base_up_rate,
                        sbl_index=sbl,
                        ca_index=ca,
                        competitiveness=competitiveness,
                        min_salary=row["min"],
                        q1_salary=row["q1"],
                        median_salary=row["median"],
                        q3_salary=row["q3"],
                        max_salary=row["max"],
                        base_up_krw=round_half_away_from_zero(mean * base_up_rate / 100),
                    )
                )

        logger.debug(f"Built band matrix: {len(bands)} bands, {len(cells)} cells (generation {snapshot.generation})")
        return BandMatrix(
            generation=snapshot.generation,
            base_up_rate=base_up_rate,
            bands=bands,
            cells=cells,
            summaries=self.summarize(cells, bands),
        )

    @staticmethod
    def summarize(cells: Sequence[BandLevelCell], bands: Optional[Sequence[str]] = None) -> List[BandSummary]:
        """Per-band roll-up using each cell's effective rate."""
        by_band: Dict[str, List[BandLevelCell]] = defaultdict(list)
        for cell in cells:
            by_band[cell.band].append(cell)

        summaries = []
        for band in bands or list(by_band):
            band_cells = by_band.get(band)
            if not band_cells:
                continue
            headcount = sum(c.headcount for c in band_cells)
            weighted_rate = (
                sum(c.headcount * c.effective_rate for c in band_cells) / headcount if headcount else 0.0
            )
            sbl = [c.sbl_index for c in band_cells if c.sbl_index is not None]
            ca = [c.ca_index for c in band_cells if c.ca_index is not None]
            summaries.append(
                BandSummary(
                    band=band,
                    total_headcount=headcount,
                    average_base_up_rate=weighted_rate,
                    average_sbl_index=sum(sbl) / len(sbl) if sbl else 0.0,
                    average_ca_index=sum(ca) / len(ca) if ca else 0.0,
                    budget_impact=sum(cell_budget_impact(c) for c in band_cells),
                )
            )
        return summaries

    @staticmethod
    def apply_adjustments(
        cells: Sequence[BandLevelCell], adjustments: Sequence[SliderAdjustment]
    ) -> List[BandLevelCell]:
        """Return copies of the cells with slider adjustments applied."""
        rates = {(a.band, a.level): a.adjusted_base_up_rate for a in adjustments}
        keys = {(c.band, c.level) for c in cells}
        for band, level in sorted(set(rates) - keys, key=lambda k: (k[0], LEVEL_ORDER[k[1]])):
            logger.warning(f"Ignoring adjustment for unknown cell {band} {level.value}")

        return [
            cell.model_copy(update={"adjusted_base_up_rate": rates[(cell.band, cell.level)]})
            if (cell.band, cell.level) in rates
            else cell
            for cell in cells
        ]
