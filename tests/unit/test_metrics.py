"""
Unit tests for Prometheus metric helpers.
"""

from datetime import date

import pytest

from covid_cleaning.core.models import PipelineRunResult, ProfileSummary, QualityReport
from covid_cleaning.observability import metrics
from covid_cleaning.observability.metrics import REGISTRY


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels)


class TestMetrics:
    """Tests for metric recording"""

    def test_record_profile(self):
        metrics.record_profile(ProfileSummary(total_rows=11, country_level_rows=10, region_level_rows=1, country_keys=3))

        assert sample("covid_raw_rows", scope="total") == 11
        assert sample("covid_raw_rows", scope="region") == 1
        assert sample("covid_raw_location_keys", kind="country") == 3

    def test_record_quality(self):
        report = QualityReport(
            expected_day_count=4,
            null_population=2,
            duplicate_rows=1,
            avg_missing_dates=1.5,
        )

        metrics.record_quality(report)

        assert sample("covid_data_quality_defects", audit="null", column="population") == 2
        assert sample("covid_data_quality_defects", audit="duplicate", column="date_location_key") == 1
        assert sample("covid_average_missing_dates") == 1.5

    def test_record_run_counts_status(self):
        result = PipelineRunResult(
            window_start=date(2020, 1, 1),
            window_end=date(2020, 1, 2),
            expected_day_count=2,
            status="density_violation",
            catalog_countries=4,
            observed_rows=5,
            filler_rows=2,
        )
        before = sample("covid_pipeline_runs_total", status="density_violation") or 0.0

        metrics.record_run(result)

        assert sample("covid_pipeline_runs_total", status="density_violation") == before + 1
        assert sample("covid_cleaned_rows", kind="filler") == 2
        assert sample("covid_catalog_countries") == 4
        assert sample("covid_pipeline_last_run_timestamp_seconds", status="density_violation") > 0

    def test_record_failure(self):
        before = sample("covid_pipeline_runs_total", status="failure") or 0.0

        metrics.record_failure()

        assert sample("covid_pipeline_runs_total", status="failure") == before + 1

    def test_track_duration_observes_on_error(self):
        before = sample("covid_stage_duration_seconds_count", stage="unit-test") or 0.0

        with pytest.raises(RuntimeError):
            with metrics.track_duration("unit-test"):
                raise RuntimeError("boom")

        assert sample("covid_stage_duration_seconds_count", stage="unit-test") == before + 1

    def test_write_metrics_file(self, tmp_path):
        metrics.record_failure()
        target = tmp_path / "covid_cleaning.prom"

        metrics.write_metrics_file(str(target))

        content = target.read_text()
        assert "covid_pipeline_runs_total" in content
        assert metrics.generate_metrics().startswith(b"# HELP")
