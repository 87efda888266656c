"""
YAML configuration files for the File Finder.

A configuration file is a flat YAML mapping whose keys are SearchConfig field
names. Keys left out fall back to the SearchConfig defaults, unknown keys are
rejected, and command-line flags are layered on top by the CLI.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from ..models.config import DEFAULT_EXCLUDE_DIRS, SearchConfig


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Keys grouped under a comment heading when a config file is written
FILE_SECTIONS: List[Tuple[str, Tuple[str, ...]]] = [
    ("Search scope", ("start_dir", "max_depth", "global_search")),
    ("Filters", ("file_types", "exclude_dirs", "size_limit", "include_dirs")),
    ("Keyword matching", ("search_mode", "case_sensitive", "context_lines",
                          "max_content_size", "load_previews")),
    ("Concurrency", ("concurrent", "workers", "index_workers", "drop_on_backpressure")),
]


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read or does not validate."""
    pass


@dataclass
class ConfigParseResult:
    """
    Outcome of loading a configuration.

    Attributes:
        config: Validated search configuration
        warnings: Non-fatal problems worth showing the user
        config_path: File the values came from, None when only defaults were used
        is_default: Whether no configuration file was found
    """
    config: SearchConfig
    warnings: List[str] = field(default_factory=list)
    config_path: Optional[Path] = None
    is_default: bool = False


def read_yaml_mapping(file_path: Path) -> Dict[str, Any]:
    """
    Read a YAML file that must hold a mapping (an empty file counts as {}).

    Raises:
        ConfigurationError: If the file is unreadable, malformed, or not a mapping
    """
    try:
        text = file_path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e

    if data is None:
        logger.warning(f"Configuration file is empty: {file_path}")
        return {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{file_path} must contain a YAML object, got {type(data).__name__}"
        )
    return data


def _write_text(output_path: PathLike, content: str) -> Path:
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}") from e
    return output_path


class ConfigParser:
    """
    Finds, reads and validates configuration files.

    With ``strict_mode`` every warning is promoted to a ConfigurationError.
    """

    DEFAULT_CONFIG_NAMES = [
        '.filefinder.yaml',
        '.filefinder.yml',
        'filefinder.yaml',
        'filefinder.yml'
    ]

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode

    def get_search_paths(self) -> List[Path]:
        """Directories searched for a configuration file, in priority order."""
        return [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'filefinder',
        ]

    def iter_candidate_files(self) -> Iterator[Path]:
        """Yield every existing default-named file in the search paths."""
        for directory in self.get_search_paths():
            for name in self.DEFAULT_CONFIG_NAMES:
                candidate = directory / name
                if candidate.is_file():
                    yield candidate

    def load_config(self, config_path: Optional[PathLike] = None) -> ConfigParseResult:
        """
        Build a SearchConfig from an explicit file, a discovered file, or defaults.

        Args:
            config_path: File to load; when omitted the search paths are tried

        Returns:
            ConfigParseResult with the validated configuration and its warnings

        Raises:
            ConfigurationError: If the file is missing or invalid, or if strict
                mode is on and there are warnings
        """
        if config_path is not None:
            config_path = Path(config_path)
            if not config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {config_path}")
            data = read_yaml_mapping(config_path)
        else:
            config_path, data = self._discover()

        is_default = config_path is None
        config = self.build_config(data)

        warnings = config.validate_configuration()
        warnings.extend(self._file_warnings(config, is_default))

        if self.strict_mode and warnings:
            raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

        logger.info(f"Configuration loaded from {config_path or 'defaults'}")
        return ConfigParseResult(
            config=config,
            warnings=warnings,
            config_path=config_path,
            is_default=is_default,
        )

    def _discover(self) -> Tuple[Optional[Path], Dict[str, Any]]:
        for candidate in self.iter_candidate_files():
            try:
                data = read_yaml_mapping(candidate)
            except ConfigurationError as e:
                logger.warning(f"Ignoring configuration file {candidate}: {e}")
                continue
            logger.info(f"Using configuration file: {candidate}")
            return candidate, data

        logger.info("No configuration file found, using defaults")
        return None, {}

    @staticmethod
    def build_config(data: Dict[str, Any]) -> SearchConfig:
        """
        Validate a mapping of SearchConfig fields; missing keys take defaults.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        unknown = sorted(set(data) - set(SearchConfig.model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        try:
            return SearchConfig.from_dict(data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    @staticmethod
    def _file_warnings(config: SearchConfig, is_default: bool) -> List[str]:
        warnings = []
        if is_default:
            warnings.append("No configuration file found, using default settings")
        if not config.get_root_path().is_dir():
            warnings.append(f"Start directory does not exist: {config.start_dir}")
        if not config.exclude_dirs:
            warnings.append("No excluded directories configured; VCS and dependency trees will be walked")
        return warnings

    @staticmethod
    def render_yaml(values: Dict[str, Any]) -> str:
        """Dump config values as YAML grouped under commented section headings."""
        lines = [
            "# File Finder configuration",
            "# Keys not listed here take their built-in defaults.",
            "",
        ]
        for heading, keys in FILE_SECTIONS:
            section = {key: values[key] for key in keys if key in values}
            if not section:
                continue
            lines.append(f"# {heading}")
            lines.append(yaml.safe_dump(section, default_flow_style=False, sort_keys=False).rstrip())
            lines.append("")
        return "\n".join(lines)

    def save_config(self, config: SearchConfig, output_path: PathLike) -> None:
        """
        Write a configuration to a YAML file that load_config reads back unchanged.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        path = _write_text(output_path, self.render_yaml(config.to_dict()))
        logger.info(f"Configuration saved to {path}")

    def validate_config_file(self, config_path: PathLike) -> List[str]:
        """
        Check a configuration file without loading it for use.

        Returns:
            Error messages; empty when the file is valid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            return [f"Configuration file not found: {config_path}"]

        try:
            self.build_config(read_yaml_mapping(config_path))
        except ConfigurationError as e:
            return [str(e)]
        return []

    def get_config_template(self) -> str:
        """Example configuration showing every key with a sample value."""
        values = SearchConfig().to_dict()
        values['file_types'] = ['txt', 'log', 'conf']
        values['exclude_dirs'] = list(DEFAULT_EXCLUDE_DIRS) + ['__pycache__', '.venv']
        return self.render_yaml(values)


def load_config(config_path: Optional[PathLike] = None, strict_mode: bool = False) -> ConfigParseResult:
    """Load a configuration with a throwaway parser."""
    return ConfigParser(strict_mode=strict_mode).load_config(config_path)


def validate_config_file(config_path: PathLike) -> List[str]:
    """Validate a configuration file with a throwaway parser."""
    return ConfigParser().validate_config_file(config_path)


def create_config_template(output_path: PathLike) -> None:
    """
    Write the example configuration to output_path.

    Raises:
        ConfigurationError: If the file cannot be written
    """
    _write_text(output_path, ConfigParser().get_config_template())
