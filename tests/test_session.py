"""
Tests for session state and the stale-load guard.
"""
import logging

import numpy as np

from engine_log_viewer.core import LoadGuard, Session


class TestSession:
    """Tests for Session."""

    def test_default_selection(self, scenario_a_session):
        assert scenario_a_session.channel_names == ["RPM", "AFR"]
        assert scenario_a_session.selected == ["RPM", "AFR"]

    def test_display_names(self, scenario_a_session):
        assert scenario_a_session.display_name("RPM") == "Engine Speed (rpm)"
        assert scenario_a_session.display_name("Unknown") == "Unknown"

    def test_domain(self, scenario_a_session):
        assert scenario_a_session.domain == (0.0, 2.0)
        assert scenario_a_session.full_viewport.to_tuple() == (0.0, 2.0)

    def test_series(self, scenario_a_session):
        series = scenario_a_session.series("RPM")

        assert series.title == "Engine Speed (rpm)"
        assert series.x_axis is scenario_a_session.x_axis
        assert series.gap_count == 1
        assert len(series.y) == len(series.x_axis)

    def test_series_cached(self, scenario_a_session):
        assert scenario_a_session.series("AFR") is scenario_a_session.series("AFR")

    def test_non_numeric_cells_are_gaps(self, reader):
        session = Session.from_log(reader.parse("Time,AFR\n0,14.7\n1,ERR\n2,13.9\n"))

        y = session.series("AFR").y
        assert np.isnan(y[1])
        assert y[2] == 13.9

    def test_readout_rows_follow_selection(self, scenario_a_session):
        scenario_a_session.selected = ["AFR"]

        assert scenario_a_session.readout_rows(0) == [("Air/Fuel Ratio", "14.7")]

    def test_nearest_index(self, scenario_a_session):
        x_axis = scenario_a_session.x_axis

        assert x_axis.nearest_index(1.4) == 1
        assert x_axis.nearest_index(-3.0) == 0
        assert x_axis.nearest_index(float("nan")) is None


class TestLoadGuard:
    """Tests for LoadGuard."""

    def test_latest_token_accepted(self):
        guard = LoadGuard()
        token = guard.begin()

        assert guard.accept(token)
        assert guard.generation == token

    def test_superseded_load_dropped(self, caplog):
        guard = LoadGuard()
        first = guard.begin()
        second = guard.begin()

        with caplog.at_level(logging.WARNING, logger="engine_log_viewer"):
            assert not guard.accept(first)
        assert guard.accept(second)
        assert "stale load" in caplog.text

    def test_out_of_order_completion(self, reader):
        """The slower, older load must not replace the newer one."""
        guard = LoadGuard()
        current = None

        old_token = guard.begin()
        new_token = guard.begin()
        results = [
            (new_token, reader.parse("Time,RPM\n0,1\n1,2\n", source="new.csv")),
            (old_token, reader.parse("Time,AFR\n0,14\n1,15\n", source="old.csv")),
        ]
        for token, log in results:
            if guard.accept(token):
                current = Session.from_log(log)

        assert current.log.source == "new.csv"

    def test_tokens_increase(self):
        guard = LoadGuard()
        assert [guard.begin() for _ in range(3)] == [1, 2, 3]
        assert not guard.is_current(2)
        assert guard.is_current(3)
