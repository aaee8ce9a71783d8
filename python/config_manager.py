"""
Configuration Management Module
Loads and validates configuration from config.yaml
"""

import os
import yaml
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class MatchingConfig:
    """Matching configuration parameters

    Thresholds are similarity scores in [0, 1]; each is the inclusive
    lower bound of its band.
    """
    exact_match_threshold: float = 0.90
    possible_match_threshold: float = 0.75
    score_precision: int = 2


@dataclass
class DataConfig:
    """Data location configuration"""
    data_directory: str = "data"
    watchlist_file: str = "watchlist.json"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    file: Optional[str] = None
    console: bool = True
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class AlgorithmConfig:
    """Algorithm version information"""
    version: str = "1.0.0"
    name: str = "Token-Sorted Levenshtein Matcher"


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


class ConfigManager:
    """Manages system configuration"""

    _instance: Optional['ConfigManager'] = None

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to config.yaml file
        """
        self.config_path = Path(config_path) if config_path else self._find_config()
        self._raw_config: Dict[str, Any] = {}
        self.matching: MatchingConfig = MatchingConfig()
        self.data: DataConfig = DataConfig()
        self.logging: LoggingConfig = LoggingConfig()
        self.algorithm: AlgorithmConfig = AlgorithmConfig()

        if self.config_path and self.config_path.exists():
            self.load()
        else:
            logger.warning(f"Config file not found at {self.config_path}, using defaults")

    def _find_config(self) -> Path:
        """Find config.yaml in common locations"""
        env_path = os.getenv("CONFIG_PATH")
        if env_path:
            return Path(env_path)

        search_paths = [
            Path(__file__).parent / "config.yaml",
            Path.cwd() / "config.yaml",
            Path.cwd() / "python" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return search_paths[0]

    def load(self) -> None:
        """Load configuration from YAML file"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")
        except FileNotFoundError:
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        if not isinstance(self._raw_config, dict):
            raise ConfigurationError("Config file must contain a mapping at the top level")

        self._parse_matching()
        self._parse_data()
        self._parse_logging()
        self._parse_algorithm()
        self._validate()

    def _section(self, name: str) -> Dict[str, Any]:
        cfg = self._raw_config.get(name) or {}
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"Config section '{name}' must be a mapping")
        return cfg

    def _parse_matching(self) -> None:
        """Parse matching configuration"""
        cfg = self._section('matching')
        defaults = MatchingConfig()
        self.matching = MatchingConfig(
            exact_match_threshold=cfg.get('exact_match_threshold', defaults.exact_match_threshold),
            possible_match_threshold=cfg.get('possible_match_threshold', defaults.possible_match_threshold),
            score_precision=cfg.get('score_precision', defaults.score_precision)
        )

    def _parse_data(self) -> None:
        """Parse data configuration"""
        cfg = self._section('data')
        self.data = DataConfig(
            data_directory=cfg.get('data_directory', self.data.data_directory),
            watchlist_file=cfg.get('watchlist_file', self.data.watchlist_file)
        )

    def _parse_logging(self) -> None:
        """Parse logging configuration"""
        cfg = self._section('logging')
        self.logging = LoggingConfig(
            level=cfg.get('level', 'INFO'),
            file=cfg.get('file'),
            console=cfg.get('console', True),
            format=cfg.get('format', self.logging.format)
        )

    def _parse_algorithm(self) -> None:
        """Parse algorithm configuration"""
        cfg = self._section('algorithm')
        self.algorithm = AlgorithmConfig(
            version=str(cfg.get('version', self.algorithm.version)),
            name=cfg.get('name', self.algorithm.name)
        )

    @classmethod
    def get_instance(cls, config_path: Optional[str] = None) -> 'ConfigManager':
        """Get singleton instance of ConfigManager"""
        if cls._instance is None:
            cls._instance = ConfigManager(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)"""
        cls._instance = None

    @classmethod
    def create(cls, config_path: Optional[str] = None) -> 'ConfigManager':
        """Build a standalone instance that bypasses the singleton"""
        return cls(config_path)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary"""
        return {
            'matching': {
                'exact_match_threshold': self.matching.exact_match_threshold,
                'possible_match_threshold': self.matching.possible_match_threshold,
                'score_precision': self.matching.score_precision
            },
            'data': {
                'data_directory': self.data.data_directory,
                'watchlist_file': self.data.watchlist_file
            },
            'logging': {
                'level': self.logging.level,
                'file': self.logging.file,
                'console': self.logging.console
            },
            'algorithm': {
                'version': self.algorithm.version,
                'name': self.algorithm.name
            }
        }

    def _validate(self) -> None:
        """Validate configuration values

        Raises:
            ConfigurationError: If any value is out of range
        """
        m = self.matching
        for key in ('exact_match_threshold', 'possible_match_threshold'):
            value = getattr(m, key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"matching.{key} must be a number, got {value!r}")
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"matching.{key} must be between 0 and 1, got {value}")

        if m.possible_match_threshold >= m.exact_match_threshold:
            raise ConfigurationError(
                "matching.possible_match_threshold must be lower than matching.exact_match_threshold"
            )

        if isinstance(m.score_precision, bool) or not isinstance(m.score_precision, int) or m.score_precision < 0:
            raise ConfigurationError(
                f"matching.score_precision must be a non-negative integer, got {m.score_precision!r}"
            )

        if not isinstance(logging.getLevelName(str(self.logging.level).upper()), int):
            raise ConfigurationError(f"logging.level is not a valid level: {self.logging.level}")


def get_config(config_path: Optional[str] = None) -> ConfigManager:
    """Convenience function to get configuration instance"""
    return ConfigManager.get_instance(config_path)
