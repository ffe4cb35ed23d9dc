"""Pay band constraint engine.

Validates a proposed band x level base-up matrix against policy bounds. The
engine is stateless and never mutates its input; callers run it on every
slider change, so each pass is linear in the number of cells.

Evaluation order:
1. Slider range: adjusted rates must lie within [slider_min, slider_max]
2. Level gap: effective pay must rise by at least level_gap_min between
   adjacent levels of the same band (inversion is an error, a narrow gap a warning)
3. Budget: total impact must not exceed budget_cap
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..config import AppSettings, get_settings
from ..constants import LEVEL_ORDER
from ..exceptions import ConfigurationError
from ..models.bands import BandLevelCell, CalculationResult, Constraints, ConstraintViolation

logger = logging.getLogger(__name__)


def cell_budget_impact(cell: BandLevelCell) -> float:
    """headcount x mean base pay x effective rate / 100"""
    return cell.headcount * cell.mean_base_pay * cell.effective_rate / 100


def effective_pay(cell: BandLevelCell) -> float:
    return cell.mean_base_pay * (1 + cell.effective_rate / 100)


def load_constraints(settings: Optional[AppSettings] = None) -> Constraints:
    """
    Build constraints from settings, overridden by the optional YAML file.

    The YAML file holds a mapping with any of slider_min, slider_max,
    budget_cap and level_gap_min.

    Raises:
        ConfigurationError: If the file is unreadable or holds invalid values
    """
    settings = settings or get_settings()
    values = {
        "slider_min": settings.slider_min,
        "slider_max": settings.slider_max,
        "budget_cap": settings.budget_cap,
        "level_gap_min": settings.level_gap_min,
    }

    path: Optional[Path] = settings.constraints_file
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                overrides = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to read constraints file: {path}", context={"path": str(path)}, original_exception=e
            )
        if not isinstance(overrides, dict):
            raise ConfigurationError(
                f"Constraints file must contain a mapping: {path}", context={"path": str(path)}
            )
        unknown = sorted(set(overrides) - set(values))
        if unknown:
            raise ConfigurationError(
                f"Unknown constraint keys in {path}: {', '.join(unknown)}", context={"path": str(path)}
            )
        values.update(overrides)
        logger.info(f"Loaded constraint overrides from {path}")

    try:
        return Constraints(**values)
    except PydanticValidationError as e:
        raise ConfigurationError("Invalid pay band constraints", context=values, original_exception=e)


class PayBandConstraintEngine:
    """Stateless validator for band x level adjustments."""

    def check_slider_range(
        self, cells: Sequence[BandLevelCell], constraints: Constraints
    ) -> List[ConstraintViolation]:
        violations = []
        for cell in cells:
            rate = cell.adjusted_base_up_rate
            if rate is None:
                continue
            if rate < constraints.slider_min or rate > constraints.slider_max:
                violations.append(
                    ConstraintViolation(
                        type="slider_range",
                        severity="error",
                        message=(
                            f"{cell.band} {cell.level.value}: adjusted rate {rate}% is outside "
                            f"[{constraints.slider_min}%, {constraints.slider_max}%]"
                        ),
                        details={
                            "band": cell.band,
                            "level": cell.level.value,
                            "adjusted_base_up_rate": rate,
                            "slider_min": constraints.slider_min,
                            "slider_max": constraints.slider_max,
                        },
                    )
                )
        return violations

    def check_level_gaps(
        self, cells: Sequence[BandLevelCell], constraints: Constraints
    ) -> List[ConstraintViolation]:
        by_band: Dict[str, List[BandLevelCell]] = defaultdict(list)
        for cell in cells:
            if cell.headcount > 0:
                by_band[cell.band].append(cell)

        violations = []
        for band, band_cells in by_band.items():
            ordered = sorted(band_cells, key=lambda c: LEVEL_ORDER[c.level])
            for lower, upper in zip(ordered, ordered[1:]):
                lower_pay = effective_pay(lower)
                upper_pay = effective_pay(upper)
                if lower_pay <= 0:
                    continue
                gap = (upper_pay - lower_pay) / lower_pay
                details = {
                    "band": band,
                    "lower_level": lower.level.value,
                    "upper_level": upper.level.value,
                    "lower_effective_pay": lower_pay,
                    "upper_effective_pay": upper_pay,
                    "gap": gap,
                    "level_gap_min": constraints.level_gap_min,
                }
                if upper_pay < lower_pay:
                    violations.append(
                        ConstraintViolation(
                            type="level_gap_violation",
                            severity="error",
                            message=(
                                f"{band}: {upper.level.value} would be paid less than "
                                f"{lower.level.value}"
                            ),
                            details=details,
                        )
                    )
                elif gap < constraints.level_gap_min:
                    violations.append(
                        ConstraintViolation(
                            type="level_gap_violation",
                            severity="warning",
                            message=(
                                f"{band}: gap between {lower.level.value} and {upper.level.value} "
                                f"is {gap:.1%}, below the {constraints.level_gap_min:.1%} minimum"
                            ),
                            details=details,
                        )
                    )
        return violations

    def check_budget(
        self, total_impact: float, constraints: Constraints
    ) -> List[ConstraintViolation]:
        cap = constraints.budget_cap
        if cap is None or total_impact <= cap:
            return []
        return [
            ConstraintViolation(
                type="budget_exceeded",
                severity="error",
                message=f"Total budget impact {total_impact:,.0f} exceeds the cap of {cap:,.0f}",
                details={"total_impact": total_impact, "budget_cap": cap},
            )
        ]

    def validate(
        self, cells: Sequence[BandLevelCell], constraints: Constraints
    ) -> CalculationResult:
        """
        Validate a matrix of cells against constraints.

        Args:
            cells: Band x level cells, with adjusted rates where the user edited them
            constraints: Policy bounds

        Returns:
            CalculationResult with total impact, budget usage and violations
            in evaluation order
        """
        total_impact = sum(cell_budget_impact(cell) for cell in cells)

        violations = self.check_slider_range(cells, constraints)
        violations.extend(self.check_level_gaps(cells, constraints))
        violations.extend(self.check_budget(total_impact, constraints))

        cap = constraints.budget_cap
        budget_usage = total_impact / cap if cap is not None and cap > 0 else None

        logger.debug(
            f"Validated {len(cells)} cells: impact={total_impact:,.0f}, "
            f"violations={len(violations)}"
        )
        return CalculationResult(
            total_impact=total_impact,
            budget_usage=budget_usage,
            constraint_violations=violations,
        )
