"""Tests for the pay band constraint engine."""

import pytest

from wageplan_api.config import AppSettings
from wageplan_api.constants import Level
from wageplan_api.exceptions import ConfigurationError
from wageplan_api.models.bands import BandLevelCell, Constraints
from wageplan_api.services.constraint_service import (
    PayBandConstraintEngine,
    cell_budget_impact,
    load_constraints,
)


def cell(band="생산", level="Lv.1", headcount=10, mean=60_000_000, rate=3.0, adjusted=None):
    return BandLevelCell(
        band=band,
        level=Level(level),
        headcount=headcount,
        mean_base_pay=mean,
        base_up_rate=rate,
        adjusted_base_up_rate=adjusted,
    )


@pytest.fixture
def engine():
    return PayBandConstraintEngine()


class TestSliderRange:
    def test_below_minimum_is_single_error(self, engine):
        result = engine.validate([cell(adjusted=-6.0)], Constraints(slider_min=-5.0, slider_max=10.0))

        assert len(result.constraint_violations) == 1
        violation = result.constraint_violations[0]
        assert violation.type == "slider_range"
        assert violation.severity == "error"
        assert violation.details["adjusted_base_up_rate"] == -6.0

    def test_bounds_are_inclusive(self, engine):
        cells = [cell(band="생산", adjusted=-5.0), cell(band="영업", adjusted=10.0)]

        result = engine.validate(cells, Constraints(slider_min=-5.0, slider_max=10.0))

        assert result.constraint_violations == []

    def test_unadjusted_cells_are_not_range_checked(self, engine):
        result = engine.validate([cell(rate=15.0)], Constraints())

        assert [v.type for v in result.constraint_violations] == []


class TestLevelGap:
    def test_inverted_levels_are_an_error(self, engine):
        cells = [
            cell(level="Lv.1", mean=60_000_000, rate=3.0),
            cell(level="Lv.2", mean=61_000_000, rate=3.0, adjusted=-5.0),
        ]

        result = engine.validate(cells, Constraints())

        gap_violations = [v for v in result.constraint_violations if v.type == "level_gap_violation"]
        assert len(gap_violations) == 1
        assert gap_violations[0].severity == "error"
        assert gap_violations[0].details["lower_level"] == "Lv.1"
        assert gap_violations[0].details["upper_level"] == "Lv.2"
        assert result.has_errors

    def test_narrow_gap_is_a_warning(self, engine):
        cells = [
            cell(level="Lv.1", mean=60_000_000),
            cell(level="Lv.2", mean=62_000_000),
        ]

        result = engine.validate(cells, Constraints(level_gap_min=0.05))

        assert [(v.type, v.severity) for v in result.constraint_violations] == [
            ("level_gap_violation", "warning")
        ]
        assert not result.has_errors

    def test_equal_pay_is_a_warning_not_an_inversion(self, engine):
        cells = [
            cell(level="Lv.1", mean=60_000_000),
            cell(level="Lv.2", mean=60_000_000),
        ]

        result = engine.validate(cells, Constraints())

        assert [(v.type, v.severity) for v in result.constraint_violations] == [
            ("level_gap_violation", "warning")
        ]

    def test_sufficient_gap_passes(self, engine):
        cells = [
            cell(level="Lv.1", mean=60_000_000),
            cell(level="Lv.2", mean=70_000_000),
            cell(level="Lv.3", mean=90_000_000),
        ]

        result = engine.validate(cells, Constraints())

        assert result.constraint_violations == []

    def test_empty_cells_are_skipped_between_levels(self, engine):
        cells = [
            cell(level="Lv.1", mean=60_000_000),
            cell(level="Lv.2", headcount=0, mean=0),
            cell(level="Lv.3", mean=70_000_000),
        ]

        result = engine.validate(cells, Constraints())

        assert result.constraint_violations == []

    def test_bands_are_checked_independently(self, engine):
        cells = [
            cell(band="생산", level="Lv.1", mean=60_000_000),
            cell(band="영업", level="Lv.2", mean=50_000_000),
        ]

        result = engine.validate(cells, Constraints())

        assert result.constraint_violations == []

    def test_cell_order_does_not_matter(self, engine):
        cells = [
            cell(level="Lv.2", mean=50_000_000),
            cell(level="Lv.1", mean=60_000_000),
        ]

        result = engine.validate(cells, Constraints())

        assert [v.severity for v in result.constraint_violations] == ["error"]


class TestBudget:
    def test_exceeding_cap_is_an_error(self, engine):
        # 10 x 50M x 3% = 15M
        cells = [cell(headcount=10, mean=50_000_000, rate=3.0)]

        result = engine.validate(cells, Constraints(budget_cap=10_000_000))

        assert result.total_impact == pytest.approx(15_000_000)
        assert result.budget_usage == pytest.approx(1.5)
        assert result.budget_usage > 1.0
        assert [(v.type, v.severity) for v in result.constraint_violations] == [
            ("budget_exceeded", "error")
        ]

    def test_within_cap(self, engine):
        cells = [cell(headcount=10, mean=50_000_000, rate=3.0)]

        result = engine.validate(cells, Constraints(budget_cap=20_000_000))

        assert result.budget_usage == pytest.approx(0.75)
        assert result.constraint_violations == []

    def test_no_cap_has_no_usage(self, engine):
        result = engine.validate([cell()], Constraints())

        assert result.budget_usage is None

    def test_impact_uses_adjusted_rate_when_set(self):
        assert cell_budget_impact(cell(headcount=2, mean=1_000_000, rate=3.0, adjusted=5.0)) == pytest.approx(100_000)
        assert cell_budget_impact(cell(headcount=2, mean=1_000_000, rate=3.0)) == pytest.approx(60_000)


class TestValidationProtocol:
    def test_violations_follow_evaluation_order(self, engine):
        cells = [
            cell(level="Lv.1", mean=60_000_000, adjusted=9.0),
            cell(level="Lv.2", mean=61_000_000, adjusted=-6.0),
        ]

        result = engine.validate(cells, Constraints(budget_cap=1.0))

        assert [v.type for v in result.constraint_violations] == [
            "slider_range",
            "level_gap_violation",
            "budget_exceeded",
        ]

    def test_input_cells_are_not_mutated(self, engine):
        cells = [cell(level="Lv.1", adjusted=-6.0), cell(level="Lv.2", mean=50_000_000)]
        before = [c.model_dump() for c in cells]

        engine.validate(cells, Constraints(budget_cap=1.0))

        assert [c.model_dump() for c in cells] == before

    def test_repeated_validation_is_reproducible(self, engine):
        cells = [cell(level="Lv.1", adjusted=-6.0), cell(level="Lv.2", mean=50_000_000)]
        constraints = Constraints(budget_cap=1.0)

        assert engine.validate(cells, constraints) == engine.validate(cells, constraints)


class TestLoadConstraints:
    def test_defaults_from_settings(self, tmp_path):
        settings = AppSettings(data_dir=tmp_path, slider_min=-3.0, budget_cap=5_000_000)

        constraints = load_constraints(settings)

        assert constraints.slider_min == -3.0
        assert constraints.slider_max == 10.0
        assert constraints.budget_cap == 5_000_000
        assert constraints.level_gap_min == 0.05

    def test_yaml_file_overrides_settings(self, tmp_path):
        path = tmp_path / "constraints.yaml"
        path.write_text("slider_max: 8.0\nbudget_cap: 1000000\n", encoding="utf-8")
        settings = AppSettings(data_dir=tmp_path, constraints_file=path)

        constraints = load_constraints(settings)

        assert constraints.slider_max == 8.0
        assert constraints.budget_cap == 1_000_000
        assert constraints.slider_min == -5.0

    def test_unknown_key_is_rejected(self, tmp_path):
        path = tmp_path / "constraints.yaml"
        path.write_text("slider_maximum: 8.0\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="slider_maximum"):
            load_constraints(AppSettings(data_dir=tmp_path, constraints_file=path))

    def test_non_mapping_is_rejected(self, tmp_path):
        path = tmp_path / "constraints.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_constraints(AppSettings(data_dir=tmp_path, constraints_file=path))

    def test_inverted_slider_bounds_are_rejected(self, tmp_path):
        path = tmp_path / "constraints.yaml"
        path.write_text("slider_min: 5.0\nslider_max: 1.0\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_constraints(AppSettings(data_dir=tmp_path, constraints_file=path))

    def test_missing_file_is_a_configuration_error(self, tmp_path):
        settings = AppSettings(data_dir=tmp_path, constraints_file=tmp_path / "missing.yaml")

        with pytest.raises(ConfigurationError):
            load_constraints(settings)
