"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Literal, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ColumnMappings(BaseModel):
    """Normalized header names for the columns the engine reads."""

    reference: str = "transaction_reference"
    amount: str = "amount"
    status: str = "status"


class InputConfig(BaseModel):
    """Configuration for CSV input parsing."""

    encoding: str = "utf-8"
    delimiter: str = ","
    column_mappings: ColumnMappings = Field(default_factory=ColumnMappings)


class MatchingSettings(BaseModel):
    """Settings for the reference-keyed matching pass."""

    amount_tolerance: float = Field(default=0.01, ge=0)
    duplicate_references: Literal["last_wins", "reject"] = "last_wins"
    compare_status: bool = True


class MatchingConfig(BaseModel):
    """Configuration for matching engine."""

    settings: MatchingSettings = Field(default_factory=MatchingSettings)


class ExportFilenames(BaseModel):
    """File names used when exporting result subsets to CSV."""

    matched: str = "matched_transactions.csv"
    internal_only: str = "internal_only_transactions.csv"
    provider_only: str = "provider_only_transactions.csv"
    amount_mismatches: str = "amount_mismatches.csv"
    status_mismatches: str = "status_mismatches.csv"


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matched: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matched"))
    internal_only: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Internal Only")
    )
    provider_only: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Provider Only")
    )
    amount_mismatches: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Amount Mismatches")
    )
    status_mismatches: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Status Mismatches")
    )


class OutputConfig(BaseModel):
    """Configuration for output."""

    exports: ExportFilenames = Field(default_factory=ExportFilenames)
    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "input": {
            "encoding": "utf-8",
            "delimiter": ",",
            "column_mappings": {
                "reference": "transaction_reference",
                "amount": "amount",
                "status": "status",
            },
        },
        "matching": {
            "settings": {
                "amount_tolerance": 0.01,
                "duplicate_references": "last_wins",
                "compare_status": True,
            },
        },
        "output": {
            "exports": {
                "matched": "matched_transactions.csv",
                "internal_only": "internal_only_transactions.csv",
                "provider_only": "provider_only_transactions.csv",
                "amount_mismatches": "amount_mismatches.csv",
                "status_mismatches": "status_mismatches.csv",
            },
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "matched": {"enabled": True, "name": "Matched"},
                "internal_only": {"enabled": True, "name": "Internal Only"},
                "provider_only": {"enabled": True, "name": "Provider Only"},
                "amount_mismatches": {"enabled": True, "name": "Amount Mismatches"},
                "status_mismatches": {"enabled": True, "name": "Status Mismatches"},
            },
        },
        "logging": {
            "level": "WARNING",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(
                f"Configuration root in {config_path} must be a mapping"
            )

        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Write the default configuration as a commented YAML file.

    Args:
        output_path: Path to write the configuration file
    """
    yaml_content = """# ReconFlow reconciliation configuration
# Column names are matched after header normalization
# (trimmed, lowercased, whitespace replaced by underscores).
# duplicate_references: last_wins | reject

"""
    yaml_content += yaml.dump(
        get_default_config(), default_flow_style=False, sort_keys=False
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
