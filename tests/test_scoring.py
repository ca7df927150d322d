"""Tests for execution scoring."""

from datetime import UTC, datetime
from itertools import product

import pytest

from ride_coach_server.analytics.scoring import DEFAULT_IF_BAND, score_execution
from ride_coach_server.schemas.analysis import RideMetrics, RideType, ZoneTimes
from ride_coach_server.schemas.records import RideCategory
from ride_coach_server.schemas.training import TrainingParamsSnapshot


def make_metrics(**overrides) -> RideMetrics:
    fields = {
        "activity_id": 1,
        "start_time": datetime(2026, 3, 10, 7, 30, tzinfo=UTC),
        "category": RideCategory.ROAD,
        "duration_sec": 3600,
        "avg_power": 140.0,
        "intensity_factor": 0.7,
        "zones": ZoneTimes(z2=3600),
        "decoupling_pct": 2.0,
        "ride_type": RideType.ENDURANCE,
    }
    fields.update(overrides)
    return RideMetrics(**fields)


def test_well_executed_endurance_ride() -> None:
    score = score_execution(make_metrics(), avg_duration_sec=3600)
    assert score is not None
    assert score.score == 100
    assert score.target_if_range == (0.60, 0.80)


def test_major_penalties_add_up() -> None:
    metrics = make_metrics(
        duration_sec=7200,
        intensity_factor=0.9,
        decoupling_pct=9.0,
        zones=ZoneTimes(z2=80, z4=20),
    )
    score = score_execution(metrics, avg_duration_sec=3600)
    assert score is not None
    assert (score.duration, score.intensity, score.decoupling, score.zone_purity) == (
        90,
        90,
        90,
        90,
    )
    assert score.score == 60


def test_minor_penalties() -> None:
    metrics = make_metrics(
        duration_sec=4320,
        decoupling_pct=5.0,
        zones=ZoneTimes(z2=93, z4=7),
    )
    score = score_execution(metrics, avg_duration_sec=3600)
    assert score is not None
    assert score.duration == 95
    assert score.intensity == 100
    assert score.decoupling == 95
    assert score.zone_purity == 95
    assert score.score == 85


def test_no_duration_means_no_score() -> None:
    assert score_execution(make_metrics(duration_sec=None), avg_duration_sec=3600) is None


def test_duration_check_needs_history() -> None:
    score = score_execution(make_metrics(duration_sec=20000))
    assert score is not None
    assert score.duration == 100


def test_intensity_derived_from_params() -> None:
    metrics = make_metrics(intensity_factor=None, avg_power=300.0)
    score = score_execution(metrics, TrainingParamsSnapshot(ftp_recommended=200))
    assert score is not None
    assert score.intensity == 90


def test_unknown_intensity_is_not_penalized() -> None:
    score = score_execution(make_metrics(intensity_factor=None, avg_power=None))
    assert score is not None
    assert score.intensity == 100


def test_unknown_type_uses_default_band() -> None:
    score = score_execution(make_metrics(ride_type=RideType.UNKNOWN, intensity_factor=0.8))
    assert score is not None
    assert score.target_if_range == DEFAULT_IF_BAND
    assert score.intensity == 90


def test_negative_drift_counts_by_magnitude() -> None:
    score = score_execution(make_metrics(decoupling_pct=-8.0))
    assert score is not None
    assert score.decoupling == 90


def test_zone_purity_only_for_endurance() -> None:
    metrics = make_metrics(
        ride_type=RideType.TEMPO, intensity_factor=0.85, zones=ZoneTimes(z3=50, z4=50)
    )
    score = score_execution(metrics)
    assert score is not None
    assert score.zone_purity == 100


@pytest.mark.parametrize(
    ("ride_type", "intensity_factor", "decoupling_pct", "duration_sec"),
    list(
        product(
            list(RideType),
            [None, 0.3, 0.7, 1.0, 1.4],
            [None, -12.0, 0.0, 5.0, 30.0],
            [60, 3600, 30000],
        )
    ),
)
def test_score_bounds(
    ride_type: RideType,
    intensity_factor: float | None,
    decoupling_pct: float | None,
    duration_sec: int,
) -> None:
    metrics = make_metrics(
        ride_type=ride_type,
        intensity_factor=intensity_factor,
        decoupling_pct=decoupling_pct,
        duration_sec=duration_sec,
        zones=ZoneTimes(z2=50, z4=50),
    )
    score = score_execution(metrics, avg_duration_sec=3600)
    assert score is not None
    assert 0 <= score.score <= 100
    penalties = sum(
        100 - s for s in (score.duration, score.intensity, score.decoupling, score.zone_purity)
    )
    assert score.score == 100 - penalties
