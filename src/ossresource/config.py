"""Configuration loading and Pydantic models for ossresource."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """Object store backend configuration."""

    backend: str = "memory"
    endpoint_url: str = ""
    region: str = "us-east-1"
    access_key_id: str = ""
    secret_access_key: str = ""
    use_path_style: bool = False
    memory_max_size_bytes: int = 0


class UploadConfig(BaseModel):
    """Streaming upload configuration."""

    max_workers: int = 8
    buffer_size: int = 64 * 1024
    submit_timeout: float | None = None


class ResourceConfig(BaseModel):
    """Address resolution configuration."""

    scheme: str = "oss"
    auto_create_files: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "text"


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = True


class OssResourceConfig(BaseModel):
    """Top-level ossresource configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    resource: ResourceConfig = Field(default_factory=ResourceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


def _parse_store(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the store section from YAML data.

    Handles nested structure: store.s3.endpoint -> endpoint_url,
    store.memory.max_size_bytes -> memory_max_size_bytes, etc.
    """
    if data is None:
        return {}

    result: dict[str, Any] = {"backend": data.get("backend", "memory")}

    s3_section = data.get("s3")
    if isinstance(s3_section, dict):
        result["endpoint_url"] = s3_section.get("endpoint", "")
        result["region"] = s3_section.get("region", "us-east-1")
        result["access_key_id"] = s3_section.get("access_key_id", "")
        result["secret_access_key"] = s3_section.get("secret_access_key", "")
        result["use_path_style"] = s3_section.get("use_path_style", False)

    memory_section = data.get("memory")
    if isinstance(memory_section, dict):
        result["memory_max_size_bytes"] = memory_section.get("max_size_bytes", 0)

    return result


def _parse_upload(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the upload section from YAML data."""
    if data is None:
        return {}
    return {
        "max_workers": data.get("max_workers", 8),
        "buffer_size": data.get("buffer_size", 64 * 1024),
        "submit_timeout": data.get("submit_timeout"),
    }


def _parse_resource(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the resource section from YAML data."""
    if data is None:
        return {}
    return {
        "scheme": data.get("scheme", "oss"),
        "auto_create_files": data.get("auto_create_files", True),
    }


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {"enabled": data.get("enabled", True)}


def load_config(path: Path) -> OssResourceConfig:
    """Load an OssResourceConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated OssResourceConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return OssResourceConfig(
        store=StoreConfig(**_parse_store(raw.get("store"))),
        upload=UploadConfig(**_parse_upload(raw.get("upload"))),
        resource=ResourceConfig(**_parse_resource(raw.get("resource"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        metrics=MetricsConfig(**_parse_metrics(raw.get("metrics"))),
    )
