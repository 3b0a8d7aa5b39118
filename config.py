"""Configuration management for the prom exporter"""
from pathlib import Path
from typing import Dict, Optional, Literal
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Configuration class with Pydantic validation and environment-based settings"""

    # Exporter capacity hints, they never change rendered output
    expected_metric_count: int = Field(default=16, ge=1, description="Expected number of distinct metric names")
    expected_total_samples: int = Field(default=128, ge=0, description="Expected number of samples across all metrics")

    # Extraction settings
    illegal_label_value: str = Field(default="illegal", description="Replacement for label values that cannot be rendered")
    external_labels_str: str = Field(default="", description="Labels added to every extracted sample (comma-separated key=value)")

    # Textfile output
    prometheus_file: Optional[Path] = Field(default=None, description="Prometheus metrics file path")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Log file path")

    class Config:
        env_prefix = ""
        case_sensitive = False

    @validator('prometheus_file', 'log_file')
    def ensure_parent_directories(cls, v):
        """Ensure parent directories exist for file paths"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @validator('illegal_label_value')
    def validate_illegal_label_value(cls, v):
        """The replacement must itself be a renderable label value"""
        if any(c in v for c in '{}"\\'):
            raise ValueError("ILLEGAL_LABEL_VALUE must not contain {, }, \" or \\")
        return v

    @property
    def external_labels(self) -> Dict[str, str]:
        """Get external labels as a dict"""
        labels = {}
        for label in self.external_labels_str.split(','):
            if '=' in label:
                key, value = label.split('=', 1)
                labels[key.strip()] = value.strip()
        return labels
