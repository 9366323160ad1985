import math

import pytest

from src.pharmagarde.errors import ValidationError
from src.pharmagarde.services.geospatial import EARTH_RADIUS_KM, distance_km, to_degrees, to_radians, validate_coordinate


def test_distance_is_zero_for_same_point() -> None:
    assert distance_km(33.5731, -7.5898, 33.5731, -7.5898) == 0.0


def test_one_degree_of_latitude_along_a_meridian() -> None:
    expected = EARTH_RADIUS_KM * math.pi / 180.0
    assert distance_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)


def test_antipodal_points_are_half_the_circumference_apart() -> None:
    assert distance_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)


def test_distance_is_symmetric() -> None:
    casablanca = (33.5731, -7.5898)
    rabat = (34.0209, -6.8416)

    there = distance_km(*casablanca, *rabat)
    back = distance_km(*rabat, *casablanca)

    assert there == pytest.approx(back)
    assert 80.0 < there < 95.0


def test_degree_radian_round_trip() -> None:
    assert to_degrees(to_radians(42.0)) == pytest.approx(42.0)


@pytest.mark.parametrize(
    ("latitude", "longitude", "field"),
    [(90.5, 0.0, "latitude"), (-91.0, 0.0, "latitude"), (0.0, 180.1, "longitude"), (0.0, -200.0, "longitude")],
)
def test_validate_coordinate_rejects_out_of_range(latitude: float, longitude: float, field: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_coordinate(latitude, longitude)
    assert excinfo.value.field == field


def test_validate_coordinate_accepts_bounds() -> None:
    validate_coordinate(90.0, 180.0)
    validate_coordinate(-90.0, -180.0)
