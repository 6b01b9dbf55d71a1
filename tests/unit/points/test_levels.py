"""Tests for level thresholds."""

import pytest

from opentribe.core.modules.points.levels import LEVELS, get_level, level_for_points


class TestLevelForPoints:
    @pytest.mark.parametrize(
        ("points", "level"),
        [(0, 1), (49, 1), (50, 2), (149, 2), (150, 3), (400, 4), (999, 4), (1000, 5), (2500, 6), (10**6, 6)],
    )
    def test_thresholds(self, points, level):
        assert level_for_points(points) == level

    def test_negative_points_stay_at_first_level(self):
        assert level_for_points(-10) == 1

    def test_monotonic(self):
        levels = [level_for_points(points) for points in range(0, 3000, 7)]
        assert levels == sorted(levels)


class TestGetLevel:
    def test_known_level(self):
        assert get_level(3).name == "Regular"

    def test_unknown_level_falls_back_to_first(self):
        assert get_level(99) == LEVELS[0]
