"""
Unit tests for pipeline configuration.

Includes property-based testing with hypothesis for the derived day count.
"""

from datetime import date, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from covid_cleaning.core.config import PipelineConfig, PipelineConfigLoader, load_config


class TestPipelineConfig:
    """Tests for PipelineConfig"""

    def test_defaults_match_reference_window(self):
        """Test the default window and caps"""
        config = PipelineConfig()
        assert config.window_start == date(2020, 1, 1)
        assert config.window_end == date(2022, 9, 17)
        assert config.max_confirmed_cap == 400_000
        assert config.max_deceased_cap == 10_000
        assert config.expected_day_count == 991

    def test_single_day_window(self):
        """Test a window whose bounds coincide holds one day"""
        config = PipelineConfig(window_start=date(2021, 5, 1), window_end=date(2021, 5, 1))
        assert config.expected_day_count == 1

    def test_inverted_window_rejected(self):
        """Test window_end before window_start raises"""
        with pytest.raises(ValidationError) as exc_info:
            PipelineConfig(window_start=date(2021, 1, 2), window_end=date(2021, 1, 1))
        assert "window_end" in str(exc_info.value)

    def test_negative_cap_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_confirmed_cap=-1)

    def test_invalid_pattern_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            PipelineConfig(country_key_pattern="^[A-Z{2}$")
        assert "country_key_pattern" in str(exc_info.value)

    def test_config_is_immutable(self):
        """Test configuration cannot be mutated after creation"""
        config = PipelineConfig()
        with pytest.raises(ValidationError):
            config.max_confirmed_cap = 1

    def test_with_overrides_ignores_none(self):
        config = PipelineConfig().with_overrides(
            window_end=date(2020, 1, 31),
            window_start=None,
            output={"path": "/tmp/out", "table": None},
        )
        assert config.window_start == date(2020, 1, 1)
        assert config.window_end == date(2020, 1, 31)
        assert config.expected_day_count == 31
        assert config.output.path == "/tmp/out"
        assert config.output.format == "parquet"

    def test_with_overrides_revalidates(self):
        with pytest.raises(ValidationError):
            PipelineConfig().with_overrides(window_end=date(2019, 12, 31))

    def test_invalid_warehouse_table_name_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(warehouse={"table": "cleaned; DROP TABLE x"})

    @given(
        start=st.dates(min_value=date(2000, 1, 1), max_value=date(2030, 12, 31)),
        length=st.integers(min_value=0, max_value=2000),
    )
    def test_property_day_count_derived_from_window(self, start, length):
        """Property test: expected_day_count always equals the inclusive window length"""
        config = PipelineConfig(window_start=start, window_end=start + timedelta(days=length))
        assert config.expected_day_count == length + 1


class TestPipelineConfigLoader:
    """Tests for PipelineConfigLoader"""

    def test_load_yaml(self, tmp_path):
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text(
            "pipeline:\n"
            "  window_start: 2021-01-01\n"
            "  window_end: 2021-01-10\n"
            "  max_confirmed_cap: 1000\n"
            "  source:\n"
            "    path: data/raw.parquet\n"
            "    format: parquet\n"
        )

        config = PipelineConfigLoader(config_file).load()

        assert config.expected_day_count == 10
        assert config.max_confirmed_cap == 1000
        assert config.max_deceased_cap == 10_000
        assert config.source.format == "parquet"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PipelineConfigLoader(tmp_path / "missing.yaml")

    def test_missing_section_raises(self, tmp_path):
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("rules: {}\n")

        with pytest.raises(ValueError) as exc_info:
            PipelineConfigLoader(config_file).load()
        assert "pipeline" in str(exc_info.value)

    def test_load_config_defaults_without_file(self):
        assert load_config(None) == PipelineConfig()

    def test_repository_config_is_valid(self):
        """Test the shipped config/pipeline.yaml loads with the reference window"""
        from pathlib import Path

        config_file = Path(__file__).parent.parent.parent / "config" / "pipeline.yaml"
        config = load_config(config_file)
        assert config.expected_day_count == 991
