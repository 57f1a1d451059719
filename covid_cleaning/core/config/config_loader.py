"""
Pipeline configuration management.

Loads the pipeline configuration from YAML files.
"""

from pathlib import Path
from typing import Any

import yaml

from .pipeline_config import PipelineConfig


class PipelineConfigLoader:
    """
    Loads the pipeline configuration from a YAML file.

    Expected YAML format:
    ```yaml
    pipeline:
      window_start: 2020-01-01
      window_end: 2022-09-17
      max_confirmed_cap: 400000
      max_deceased_cap: 10000

      source:
        path: data/covid19_open_data.csv
        format: csv

      output:
        path: data/cleaned_covid_data
        format: parquet
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    def load_raw(self) -> dict[str, Any]:
        """
        Read the 'pipeline' section without validating it.

        Raises:
            ValueError: If the file has no 'pipeline' section
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "pipeline" not in config:
            raise ValueError("Configuration file must contain 'pipeline' section")

        section = config["pipeline"] or {}
        if not isinstance(section, dict):
            raise ValueError("'pipeline' section must be a mapping")

        return section

    def load(self) -> PipelineConfig:
        """
        Load and validate the pipeline configuration.

        Returns:
            PipelineConfig instance

        Raises:
            ValueError: If YAML is missing the 'pipeline' section
            pydantic.ValidationError: If a value is invalid
        """
        return PipelineConfig.model_validate(self.load_raw())


def load_config(config_path: str | Path | None = None) -> PipelineConfig:
    """
    Load configuration from a file, or the defaults when no file is given.

    Args:
        config_path: Optional path to the YAML configuration file

    Returns:
        PipelineConfig instance
    """
    if config_path is None:
        return PipelineConfig()
    return PipelineConfigLoader(config_path).load()
