"""
Unit tests for the Quality Checker stage.
"""

from datetime import date

import pytest

from covid_cleaning.batch.readers import RawObservationReader
from covid_cleaning.stages import QualityChecker
from tests.conftest import raw_row


@pytest.fixture
def sample_report(spark, sample_window_config):
    raw_df = RawObservationReader(spark).read_source(sample_window_config.source)
    return QualityChecker(sample_window_config).check(raw_df)


class TestQualityCheckerSample:
    """Audits of the fixture CSV over 2020-01-01 .. 2020-01-04"""

    def test_null_audit(self, sample_report):
        assert sample_report.null_counts() == {
            "date": 0,
            "location_key": 1,
            "new_confirmed": 0,
            "new_deceased": 0,
            "country_name": 0,
            "cumulative_confirmed": 0,
            "population": 2,
            "stringency_index": 5,
            "new_persons_vaccinated": 6,
        }

    def test_negative_audit(self, sample_report):
        assert sample_report.negative_counts() == {
            "new_confirmed": 1,
            "new_deceased": 1,
            "cumulative_confirmed": 0,
            "new_persons_vaccinated": 0,
        }
        assert sample_report.min_new_confirmed == -5
        assert sample_report.min_new_deceased == -1

    def test_duplicate_audit(self, sample_report):
        assert sample_report.duplicate_rows == 1

    def test_outlier_audit(self, sample_report):
        assert sample_report.max_new_confirmed == 500000
        assert sample_report.extreme_new_confirmed == 1
        assert sample_report.max_new_deceased == 20000
        assert sample_report.extreme_new_deceased == 1
        assert sample_report.max_cumulative_confirmed == 600
        assert sample_report.max_new_persons_vaccinated == 10

    def test_coverage_gap_audit(self, sample_report):
        assert sample_report.countries_with_missing_dates == 2
        assert sample_report.avg_missing_dates == pytest.approx(1.0)
        assert sample_report.expected_day_count == 4

    def test_metadata_audit(self, sample_report):
        assert sample_report.valid_country_keys == 3


class TestQualityChecker:
    """Tests for individual audits"""

    def test_coverage_by_country(self, make_raw, short_window_config):
        raw_df = make_raw([
            raw_row(date=date(2020, 1, 1), location_key="US"),
            raw_row(date=date(2020, 1, 2), location_key="US"),
            raw_row(date=date(2020, 1, 3), location_key="US"),
            raw_row(date=date(2020, 1, 2), location_key="DE"),
            raw_row(date=date(2020, 1, 2), location_key="DE"),
        ])

        coverage = {
            row["location_key"]: (row["observed_days"], row["missing_days"])
            for row in QualityChecker(short_window_config).coverage_by_country(raw_df).collect()
        }

        assert coverage == {"US": (3, 0), "DE": (1, 2)}

    def test_cap_boundary_is_not_extreme(self, make_raw, short_window_config):
        """Test values equal to the cap are plausible, values above are not"""
        raw_df = make_raw([
            raw_row(date=date(2020, 1, 1), location_key="US", new_confirmed=400_000, new_deceased=10_000),
            raw_row(date=date(2020, 1, 2), location_key="US", new_confirmed=400_001, new_deceased=10_001),
        ])

        report = QualityChecker(short_window_config).check(raw_df)

        assert report.extreme_new_confirmed == 1
        assert report.extreme_new_deceased == 1

    def test_region_rows_excluded_from_outliers(self, make_raw, short_window_config):
        raw_df = make_raw([
            raw_row(date=date(2020, 1, 1), location_key="US_CA", aggregation_level=1, new_confirmed=900_000),
        ])

        report = QualityChecker(short_window_config).check(raw_df)

        assert report.extreme_new_confirmed == 0
        assert report.max_new_confirmed is None

    def test_empty_window(self, make_raw, short_window_config):
        raw_df = make_raw([raw_row(date=date(2021, 1, 1), location_key="US", new_confirmed=-1)])

        report = QualityChecker(short_window_config).check(raw_df)

        assert report.total_defects == 0
        assert report.min_new_confirmed is None
        assert report.avg_missing_dates is None
        assert report.valid_country_keys == 0

    def test_combined_audit_is_single_row(self, spark, sample_window_config):
        raw_df = RawObservationReader(spark).read_source(sample_window_config.source)

        combined = QualityChecker(sample_window_config).combined_audit(raw_df)

        assert combined.count() == 1
        assert "duplicate_rows" in combined.columns
        assert "valid_country_keys" in combined.columns
