"""
Tests for log parsing, delimiter detection and x-axis inference.
"""
import numpy as np
import pandas as pd
import pytest

from engine_log_viewer.core import (
    EmptyOrMalformed,
    FileUnreadable,
    ViewerConfig,
    XAxisKind,
    build_x_axis,
    coerce_channel,
    detect_delimiter,
    detect_time_column,
    infer_x_axis,
    parse_text,
    split_line,
)
from engine_log_viewer.core.ingest import (
    compute_domain,
    make_unique_headers,
    parse_calendar,
    sparse_ticks,
)


SCENARIO_A = "Time,RPM,AFR\n0,1000,14.7\n1,2000,12.1\n2,,13.0\n"
SCENARIO_B = "Time;RPM\n0;1000\n1;2000\n"

TODAY = pd.Timestamp("2024-03-15")
TODAY_MS = TODAY.value / 1e6


class TestDelimiter:
    """Tests for comma/semicolon detection."""

    def test_comma_majority(self):
        assert detect_delimiter(["a,b,c", "1,2,3"]) == ","

    def test_semicolon_majority(self):
        assert detect_delimiter(["a;b;c", "1;2,5;3"]) == ";"

    def test_tie_goes_to_comma(self):
        """Semicolon must strictly outnumber commas."""
        assert detect_delimiter(["a,b;c"]) == ","

    def test_quoted_commas_not_counted(self):
        assert detect_delimiter(['"a,b,c";d;e']) == ";"

    def test_only_sampled_lines_count(self):
        lines = ["a;b"] * 5 + ["1,2,3,4,5,6,7,8"] * 10
        assert detect_delimiter(lines, sample_size=5) == ";"

    def test_blank_lines_skipped_in_sample(self):
        lines = ["", "  ", "a;b;c"]
        assert detect_delimiter(lines, sample_size=1) == ";"


class TestSplitLine:
    """Tests for quote-aware field splitting."""

    def test_quoted_delimiter_kept(self):
        assert split_line('"a,b";c', ";") == ["a,b", "c"]

    def test_quoted_comma_with_comma_delimiter(self):
        assert split_line('1,"x, y",3', ",") == ["1", "x, y", "3"]

    def test_fields_trimmed(self):
        assert split_line(" 1 ,  2,3  ", ",") == ["1", "2", "3"]

    def test_invisible_marks_removed(self):
        assert split_line("\ufeffTime,\u200bRPM", ",") == ["Time", "RPM"]

    def test_trailing_delimiter_gives_empty_field(self):
        assert split_line("1,2,", ",") == ["1", "2", ""]


class TestParseText:
    """Tests for parse_text."""

    def test_scenario_a(self):
        records = parse_text(SCENARIO_A)

        assert records.headers == ["Time", "RPM", "AFR"]
        assert len(records) == 3
        assert records.column("RPM") == ["1000", "2000", None]
        assert records.delimiter == ","

    def test_scenario_b(self):
        records = parse_text(SCENARIO_B)

        assert records.delimiter == ";"
        assert len(records) == 2
        assert records.row(1) == {"Time": "1", "RPM": "2000"}

    def test_row_count_is_non_blank_lines_minus_one(self):
        text = "A,B\n\n1,2\n   \n3,4\n\n"
        assert len(parse_text(text)) == 2

    def test_crlf_and_cr_line_endings(self):
        assert len(parse_text("A,B\r\n1,2\r\n3,4")) == 2
        assert len(parse_text("A,B\r1,2\r3,4\r")) == 2

    def test_short_rows_padded_with_none(self):
        records = parse_text("A,B,C\n1\n")
        assert records.row(0) == {"A": "1", "B": None, "C": None}

    def test_long_rows_truncated(self):
        records = parse_text("A,B\n1,2,3,4\n")
        assert records.row(0) == {"A": "1", "B": "2"}

    def test_every_row_has_every_header(self):
        records = parse_text("A,B,C\n1\n1,2\n1,2,3\n1,2,3,4\n")
        for row in records:
            assert list(row) == records.headers

    def test_bom_stripped_from_first_header(self):
        records = parse_text("\ufeffTime,RPM\n0,1\n")
        assert records.headers[0] == "Time"

    def test_duplicate_and_empty_headers_made_unique(self):
        records = parse_text("RPM,RPM,\n1,2,3\n")
        assert records.headers == ["RPM", "RPM (2)", "Column 3"]
        assert records.row(0)["RPM (2)"] == "2"

    def test_to_dataframe(self):
        df = parse_text(SCENARIO_A).to_dataframe()
        assert list(df.columns) == ["Time", "RPM", "AFR"]
        assert df.shape == (3, 3)

    @pytest.mark.parametrize("text", [
        "",
        "\n\n  \n",
        "Time,RPM\n",
        "Time,RPM\n\n\n",
    ])
    def test_too_few_lines(self, text):
        with pytest.raises(EmptyOrMalformed):
            parse_text(text)

    def test_empty_header(self):
        with pytest.raises(EmptyOrMalformed):
            parse_text(",,\n1,2,3\n")


class TestMakeUniqueHeaders:
    """Tests for header deduplication."""

    def test_repeated_duplicates(self):
        assert make_unique_headers(["A", "A", "A"]) == ["A", "A (2)", "A (3)"]

    def test_suffix_collision(self):
        assert make_unique_headers(["A", "A (2)", "A"]) == ["A", "A (2)", "A (3)"]


class TestCoerceChannel:
    """Tests for numeric coercion of channel cells."""

    def test_missing_becomes_nan(self):
        y = coerce_channel(["1000", "2000", None])
        np.testing.assert_array_equal(y[:2], [1000.0, 2000.0])
        assert np.isnan(y[2])

    def test_decimal_comma(self):
        y = coerce_channel(["14,7", "12.1"])
        np.testing.assert_array_almost_equal(y, [14.7, 12.1])

    def test_non_numeric_becomes_nan(self):
        y = coerce_channel(["ERR", "1", "n/a"])
        assert np.isnan(y[0])
        assert y[1] == 1.0
        assert np.isnan(y[2])

    def test_infinity_becomes_nan(self):
        y = coerce_channel(["inf", "-inf", "5"])
        assert np.isnan(y[0]) and np.isnan(y[1])
        assert y[2] == 5.0

    def test_empty(self):
        assert len(coerce_channel([])) == 0

    def test_all_missing(self):
        assert np.all(np.isnan(coerce_channel([None, None])))


class TestTimeColumn:
    """Tests for detect_time_column."""

    def test_first_time_like_header(self):
        assert detect_time_column(["RPM", "Timestamp", "Date"]) == "Timestamp"

    def test_case_insensitive(self):
        assert detect_time_column(["RPM", "GPS UTC"]) == "GPS UTC"

    def test_falls_back_to_first_header(self):
        assert detect_time_column(["Sample", "RPM"]) == "Sample"

    def test_no_headers(self):
        assert detect_time_column([]) is None


class TestParseCalendar:
    """Tests for calendar parsing to epoch milliseconds."""

    def test_time_of_day_placed_on_today(self):
        values = parse_calendar(["12:00:00", "12:00:01.5"], today=TODAY)

        assert values[0] == TODAY_MS + 12 * 3600 * 1000
        assert values[1] - values[0] == 1500.0

    def test_time_of_day_with_comma_fraction(self):
        values = parse_calendar(["00:00:00,25"], today=TODAY)
        assert values[0] == TODAY_MS + 250.0

    def test_out_of_range_time_of_day_invalid(self):
        assert np.isnan(parse_calendar(["25:00:00"], today=TODAY)[0])

    def test_iso_timestamps(self):
        values = parse_calendar(["2024-03-15T10:00:00Z", "2024-03-15T10:00:01Z"], today=TODAY)

        expected = pd.Timestamp("2024-03-15T10:00:00Z").value / 1e6
        assert values[0] == expected
        assert values[1] - values[0] == 1000.0

    def test_naive_timestamps_read_as_utc(self):
        values = parse_calendar(["2024-03-15 10:00:00"], today=TODAY)
        assert values[0] == pd.Timestamp("2024-03-15T10:00:00Z").value / 1e6

    def test_bare_numbers_not_dates(self):
        values = parse_calendar(["2024", "17"], today=TODAY)
        assert np.all(np.isnan(values))

    def test_garbage_and_missing(self):
        values = parse_calendar(["not a date", None], today=TODAY)
        assert np.all(np.isnan(values))


class TestInferXAxis:
    """Tests for numeric / calendar / categorical x-axis inference."""

    def test_numeric(self):
        axis = infer_x_axis("Time", ["0", "1", "2"])

        assert axis.kind == XAxisKind.NUMERIC
        np.testing.assert_array_equal(axis.values, [0.0, 1.0, 2.0])
        assert axis.domain == (0.0, 2.0)
        assert axis.label == "Time"

    def test_numeric_at_threshold(self):
        """Exactly 85% numeric cells is still numeric."""
        cells = [str(i) for i in range(17)] + ["x", "y", "z"]
        axis = infer_x_axis("Time", cells)

        assert axis.kind == XAxisKind.NUMERIC
        assert np.isnan(axis.values[-1])
        assert axis.domain == (0.0, 16.0)

    def test_below_numeric_threshold(self):
        cells = [str(i) for i in range(8)] + ["x", "y"]
        axis = infer_x_axis("Time", cells, today=TODAY)

        assert axis.kind == XAxisKind.CATEGORICAL

    def test_calendar(self):
        cells = ["10:00:00", "10:00:01", "10:00:02", "bad"]
        axis = infer_x_axis("Time", cells, today=TODAY)

        assert axis.kind == XAxisKind.CALENDAR
        assert axis.domain == (TODAY_MS + 36_000_000, TODAY_MS + 36_002_000)
        assert axis.value_at(3) is None

    def test_below_calendar_threshold(self):
        cells = ["10:00:00", "10:00:01", "bad", "worse"]
        axis = infer_x_axis("Time", cells, today=TODAY)

        assert axis.kind == XAxisKind.CATEGORICAL

    def test_categorical(self):
        axis = infer_x_axis("Phase", ["idle", "launch", None], today=TODAY)

        assert axis.kind == XAxisKind.CATEGORICAL
        np.testing.assert_array_equal(axis.values, [0.0, 1.0, 2.0])
        assert axis.labels == ["idle", "launch", ""]
        assert axis.domain == (0.0, 2.0)
        assert axis.label == "Phase (index)"

    def test_categorical_ticks_are_sparse(self):
        labels = [f"p{i}" for i in range(25)]
        axis = infer_x_axis("Phase", labels, ViewerConfig(categorical_tick_count=10), today=TODAY)

        assert len(axis.ticks) <= 10
        assert axis.ticks[0] == (0.0, "p0")
        assert axis.ticks[1] == (3.0, "p3")

    def test_thresholds_from_config(self):
        cells = [str(i) for i in range(8)] + ["x", "y"]
        axis = infer_x_axis("Time", cells, ViewerConfig(numeric_threshold=0.8))

        assert axis.kind == XAxisKind.NUMERIC

    def test_values_aligned_with_rows(self):
        cells = [str(i) for i in range(7)] + [None]
        axis = infer_x_axis("Time", cells)

        assert axis.kind == XAxisKind.NUMERIC
        assert len(axis) == 8
        assert axis.value_at(6) == 6.0
        assert axis.value_at(7) is None

    def test_blank_cells_count_as_invalid(self):
        """Two valid cells out of three is below the numeric threshold."""
        axis = infer_x_axis("Time", ["0", None, "2"], today=TODAY)

        assert axis.kind == XAxisKind.CATEGORICAL
        assert axis.labels == ["0", "", "2"]


class TestDomain:
    """Tests for compute_domain and sparse_ticks."""

    def test_single_value_padded(self):
        assert compute_domain(np.array([5.0])) == (4.5, 5.5)

    def test_nan_ignored(self):
        assert compute_domain(np.array([np.nan, 1.0, 3.0])) == (1.0, 3.0)

    def test_all_nan_falls_back_to_index_range(self):
        assert compute_domain(np.array([np.nan, np.nan, np.nan])) == (0.0, 2.0)

    def test_min_below_max(self):
        low, high = compute_domain(np.array([np.nan]))
        assert low < high

    def test_sparse_ticks_short_list(self):
        assert sparse_ticks(["a", "b"], 10) == [(0.0, "a"), (1.0, "b")]

    def test_sparse_ticks_empty(self):
        assert sparse_ticks([], 10) == []


class TestBuildXAxis:
    """Tests for x column selection."""

    def test_detected_time_column(self):
        records = parse_text("RPM,Time\n1000,0\n2000,1\n")
        assert build_x_axis(records).column == "Time"

    def test_explicit_column(self):
        records = parse_text(SCENARIO_A)
        axis = build_x_axis(records, "AFR")

        assert axis.column == "AFR"
        assert axis.kind == XAxisKind.NUMERIC
        np.testing.assert_array_almost_equal(axis.values, [14.7, 12.1, 13.0])

    def test_explicit_column_with_gap(self):
        """RPM has one blank in three rows, so it falls back to row index."""
        axis = build_x_axis(parse_text(SCENARIO_A), "RPM", today=TODAY)

        assert axis.kind == XAxisKind.CATEGORICAL
        assert axis.label == "RPM (index)"

    def test_unknown_column(self):
        with pytest.raises(KeyError):
            build_x_axis(parse_text(SCENARIO_A), "Boost")


class TestFileReader:
    """Tests for FileReader."""

    def test_parse_scenario_a(self, reader):
        log = reader.parse(SCENARIO_A, source="a.csv")

        assert log.source == "a.csv"
        assert log.x_axis.column == "Time"
        assert log.x_axis.kind == XAxisKind.NUMERIC
        assert len(log.record_set) == 3

    def test_decimal_comma_with_semicolons(self, reader):
        log = reader.parse("Time;RPM\n0,5;1000\n1,5;2000\n")

        np.testing.assert_array_almost_equal(log.x_axis.values, [0.5, 1.5])

    def test_read_file(self, reader, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("\ufeff" + SCENARIO_B, encoding="utf-8")

        log = reader.read_file(path)

        assert log.source == "log.csv"
        assert log.record_set.headers == ["Time", "RPM"]
        assert log.record_set.delimiter == ";"

    def test_missing_file(self, reader, tmp_path):
        with pytest.raises(FileUnreadable):
            reader.read_file(tmp_path / "missing.csv")

    def test_undecodable_file(self, reader, tmp_path):
        path = tmp_path / "binary.csv"
        path.write_bytes(b"Time,RPM\n\xff\xfe\xfa,1\n")

        with pytest.raises(FileUnreadable):
            reader.read_file(path)

    def test_empty_file(self, reader, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        with pytest.raises(EmptyOrMalformed):
            reader.read_file(path)
