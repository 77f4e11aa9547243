"""
YAML configuration loading for fsfind.

A configuration file only supplies defaults for search requests. It is looked
up at an explicit path or, failing that, under a few well-known names in the
working directory, the home directory and ``~/.config/fsfind``.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Iterator, Optional, List, Tuple, Union
import logging
from dataclasses import dataclass, field
from pydantic import ValidationError

from ..models.config import FinderConfig


logger = logging.getLogger(__name__)

# Above this scan limit a content search over a large tree gets slow
LARGE_SCAN_LIMIT = 100000000


@dataclass
class ConfigParseResult:
    """
    Outcome of loading a configuration.

    Attributes:
        config: Validated configuration
        warnings: Problems that did not prevent loading
        config_path: File the configuration came from, None for built-in defaults
        is_default: True when no configuration file was found
    """
    config: FinderConfig
    warnings: List[str] = field(default_factory=list)
    config_path: Optional[Path] = None
    is_default: bool = False


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read or is invalid."""
    pass


class ConfigParser:
    """
    Loads FinderConfig objects from YAML files.

    In strict mode any warning (unknown section, suspicious limit) makes
    loading fail instead of being returned with the result.
    """

    DEFAULT_CONFIG_NAMES = [
        '.fsfind.yaml',
        '.fsfind.yml',
        'fsfind.yaml',
        'fsfind.yml',
    ]

    KNOWN_SECTIONS = ('search', 'content', 'logging')

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def get_search_paths(self) -> List[Path]:
        """Directories searched for a default configuration file."""
        return [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'fsfind',
        ]

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ConfigParseResult:
        """
        Load the configuration at config_path, or discover one.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if config_path:
            path = Path(config_path).expanduser()
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")
            data = self._read_yaml(path)
        else:
            path, data = self._discover()

        is_default = path is None
        config = self._build_config(data)
        warnings = self._collect_warnings(config, data, path, is_default)

        if self.strict_mode and warnings:
            raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

        self.logger.info(f"Using configuration from {path or 'built-in defaults'}")
        return ConfigParseResult(config=config, warnings=warnings, config_path=path, is_default=is_default)

    def _candidate_files(self) -> Iterator[Path]:
        for directory in self.get_search_paths():
            for name in self.DEFAULT_CONFIG_NAMES:
                candidate = directory / name
                if candidate.is_file():
                    yield candidate

    def _discover(self) -> Tuple[Optional[Path], Dict[str, Any]]:
        """Return the first readable default configuration file and its data."""
        for candidate in self._candidate_files():
            try:
                data = self._read_yaml(candidate)
            except ConfigurationError as e:
                self.logger.warning(f"Skipping {candidate}: {e}")
                continue
            self.logger.debug(f"Found configuration file: {candidate}")
            return candidate, data

        return None, {}

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        if data is None:
            self.logger.warning(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a YAML object, got {type(data).__name__}")

        return data

    def _build_config(self, data: Dict[str, Any]) -> FinderConfig:
        try:
            return FinderConfig.from_dict(data)
        except ValidationError as e:
            details = '; '.join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigurationError(f"Configuration validation failed: {details}") from e

    def _collect_warnings(self, config: FinderConfig, data: Dict[str, Any],
                          path: Optional[Path], is_default: bool) -> List[str]:
        warnings = []

        if is_default:
            warnings.append("No configuration file found, using default settings")

        warnings.extend(
            f"Unknown configuration section '{section}' in {path} is ignored"
            for section in data if section not in self.KNOWN_SECTIONS
        )

        if config.content.max_bytes_per_file > LARGE_SCAN_LIMIT:
            warnings.append("Very high max_bytes_per_file limit may make content searches slow")

        return warnings

    def render(self, config: FinderConfig) -> str:
        """Render a configuration as commented YAML."""
        sections = {
            'search': "Hidden entries, symlinks and name pattern handling",
            'content': "Content scan settings",
            'logging': "Log output",
        }
        data = config.to_dict()
        lines = [
            "# fsfind configuration",
            "# Default policies for file searches; command line flags override them",
            "",
        ]

        for name, comment in sections.items():
            lines.append(f"# {comment}")
            lines.append(yaml.dump({name: data[name]}, default_flow_style=False, sort_keys=False).rstrip())
            lines.append("")

        return "\n".join(lines)

    def save_config(self, config: FinderConfig, output_path: Union[str, Path]) -> None:
        """
        Write config to output_path as YAML, creating parent directories.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(self.render(config), encoding='utf-8')
        except OSError as e:
            raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}") from e

        self.logger.info(f"Configuration saved to {output_path}")

    def validate_config_file(self, config_path: Union[str, Path]) -> List[str]:
        """Check a configuration file, returning error messages (empty when valid)."""
        path = Path(config_path)
        if not path.exists():
            return [f"Configuration file not found: {path}"]

        try:
            self._build_config(self._read_yaml(path))
        except ConfigurationError as e:
            return [str(e)]

        return []

    def get_config_template(self) -> str:
        """YAML text holding every setting at its default value."""
        return self.render(FinderConfig())


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """Load a configuration file, or the defaults when none is found."""
    return ConfigParser(strict_mode=strict_mode).load_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> List[str]:
    """Return the problems found in a configuration file."""
    return ConfigParser().validate_config_file(config_path)


def create_config_template(output_path: Union[str, Path]) -> None:
    """Write a configuration file with every setting at its default value."""
    ConfigParser().save_config(FinderConfig(), output_path)
