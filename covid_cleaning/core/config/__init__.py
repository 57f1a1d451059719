"""
Pipeline configuration: window bounds, plausibility caps, sources and sinks.
"""

from .config_loader import PipelineConfigLoader, load_config
from .pipeline_config import OutputConfig, PipelineConfig, SourceConfig, WarehouseConfig

__all__ = [
    "PipelineConfig",
    "SourceConfig",
    "OutputConfig",
    "WarehouseConfig",
    "PipelineConfigLoader",
    "load_config",
]
