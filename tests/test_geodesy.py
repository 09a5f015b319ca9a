import pytest

np = pytest.importorskip("numpy")
pytest.importorskip("pyproj")

from flight_core.geodesy import geodetic_to_cartesian, interpolate_position, is_valid_geodetic
from flight_core.model import Sample

WGS84_A = 6378137.0


def test_equator_prime_meridian_is_on_the_x_axis():
    position = geodetic_to_cartesian(0.0, 0.0, 0.0)
    assert position == pytest.approx([WGS84_A, 0.0, 0.0], abs=1e-3)


def test_altitude_moves_along_the_normal():
    low = geodetic_to_cartesian(90.0, 0.0, 0.0)
    high = geodetic_to_cartesian(90.0, 0.0, 1000.0)
    assert high - low == pytest.approx([0.0, 1000.0, 0.0], abs=1e-3)


@pytest.mark.parametrize(
    "lon, lat, alt, valid",
    [
        (7.5, 46.0, 1200, True),
        (-180, -90, 0, True),
        (181, 0, 0, False),
        (0, 91, 0, False),
        (0, 0, -1, False),
        ("7", 46, 0, False),
        (True, 46, 0, False),
    ],
)
def test_is_valid_geodetic(lon, lat, alt, valid):
    assert is_valid_geodetic(lon, lat, alt) is valid


def test_interpolate_position_is_linear_and_bounded():
    samples = [
        Sample(0.0, np.array([0.0, 0.0, 0.0])),
        Sample(10.0, np.array([10.0, 20.0, 0.0])),
        Sample(20.0, np.array([10.0, 20.0, 100.0])),
    ]

    assert interpolate_position(samples, 5.0) == pytest.approx([5.0, 10.0, 0.0])
    assert interpolate_position(samples, 15.0) == pytest.approx([10.0, 20.0, 50.0])
    assert interpolate_position(samples, 20.0) == pytest.approx([10.0, 20.0, 100.0])
    assert interpolate_position(samples, -1.0) is None
    assert interpolate_position(samples, 21.0) is None
    assert interpolate_position([], 0.0) is None


def test_interpolate_position_with_repeated_times():
    samples = [
        Sample(0.0, np.array([0.0, 0.0, 0.0])),
        Sample(1.0, np.array([1.0, 0.0, 0.0])),
        Sample(1.0, np.array([2.0, 0.0, 0.0])),
        Sample(2.0, np.array([3.0, 0.0, 0.0])),
    ]
    assert interpolate_position(samples, 1.5) == pytest.approx([2.5, 0.0, 0.0])
