import pytest

from services.conditions_service import (
    build_swell_string, build_tide_string, current_tide, daily_swell_values, degrees_to_direction,
    two_digits,
)
from services.samples import SwellSample, TideSample
from tests.fakes import local_epoch


def test_two_digits():
    assert two_digits(0) == '00'
    assert two_digits(7) == '07'
    assert two_digits(42) == '42'
    with pytest.raises(ValueError):
        two_digits(100)
    with pytest.raises(ValueError):
        two_digits(-1)


@pytest.mark.parametrize('deg,direction', [
    (0, 'N'), (360, 'N'), (22.4, 'N'), (22.5, 'NE'), (90, 'E'), (180, 'S'),
    (200, 'S'), (247.5, 'W'), (290, 'W'), (315, 'NW'), (350, 'N'),
])
def test_degrees_to_direction(deg, direction):
    assert degrees_to_direction(deg) == direction


def test_degrees_out_of_range_are_blank(capsys):
    assert degrees_to_direction(-5) == ''
    assert degrees_to_direction(400) == ''
    assert 'not from 0 to 360' in capsys.readouterr().out


def test_current_tide_rising_and_falling():
    samples = [TideSample(100, -8, 1.0), TideSample(200, -8, 2.04), TideSample(300, -8, 1.5)]
    assert current_tide(samples, now=150) == {'height': 1.0, 'rising': True}
    assert current_tide(samples, now=250) == {'height': 2.0, 'rising': False}


def test_current_tide_after_the_last_sample_compares_backwards():
    samples = [TideSample(100, -8, 1.0), TideSample(200, -8, 2.0)]
    assert current_tide(samples, now=500) == {'height': 2.0, 'rising': True}


def test_current_tide_before_any_sample():
    assert current_tide([TideSample(100, -8, 1.0)], now=50) is None
    assert current_tide([], now=50) is None


def test_tide_string_uses_local_clock():
    samples = [
        TideSample(local_epoch(2024, 1, 5, 4, 12), -8, 5.1, 'HIGH'),
        TideSample(local_epoch(2024, 1, 5, 10, 40), -8, 0.3, 'LOW'),
    ]
    assert build_tide_string(samples) == 'Jan 5: HIGH at 4:12, LOW at 10:40'
    assert build_tide_string([]) == ''


def test_tide_string_lists_only_turning_points():
    samples = [
        TideSample(local_epoch(2024, 1, 5, 3), -8, 4.9, 'NORMAL'),
        TideSample(local_epoch(2024, 1, 5, 4, 12), -8, 5.1, 'HIGH'),
        TideSample(local_epoch(2024, 1, 5, 5), -8, 4.8, 'NORMAL'),
    ]
    assert build_tide_string(samples) == 'Jan 5: HIGH at 4:12'
    assert build_tide_string(samples[:1]) == ''


def test_swell_string_skips_night_hours_and_later_days():
    samples = [
        SwellSample(local_epoch(2024, 1, 5, 0), -8, 0.5, 1.0),
        SwellSample(local_epoch(2024, 1, 5, 6), -8, 1.0, 2.5),
        SwellSample(local_epoch(2024, 1, 5, 12, 5), -8, 2.0, 3.0),
        SwellSample(local_epoch(2024, 1, 5, 15), -8, None, None),
        SwellSample(local_epoch(2024, 1, 5, 22), -8, 3.0, 4.0),
        SwellSample(local_epoch(2024, 1, 6, 6), -8, 4.0, 5.0),
    ]
    assert build_swell_string(samples) == 'Jan 5: 1.0-2.5 at 6:00, 2.0-3.0 at 12:05'


def test_swell_string_without_daytime_reports():
    assert build_swell_string([SwellSample(local_epoch(2024, 1, 5, 1), -8, 1.0, 2.0)]) == ''


def test_daily_swell_values():
    samples = [
        SwellSample(local_epoch(2024, 1, 5, 6), -8, 1.04, 2.46),
        SwellSample(local_epoch(2024, 1, 5, 12), -8, 0.9, 2.0),
        SwellSample(local_epoch(2024, 1, 6, 6), -8, 3.0, 4.0),
    ]
    assert daily_swell_values(samples) == [
        {'dayString': 'Fri 05', 'max': 2.5, 'min': 0.9},
        {'dayString': 'Sat 06', 'max': 4.0, 'min': 3.0},
    ]
