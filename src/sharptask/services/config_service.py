"""Configuration service for loading ~/.sharptask/config.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models import ConfigFile

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading and caching the config file."""

    DEFAULT_PATH = Path("~/.sharptask/config.yml")

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the config service.

        Args:
            config_path: Config file to read (default: ~/.sharptask/config.yml)
        """
        self.config_path = (config_path or self.DEFAULT_PATH).expanduser()
        self._config: ConfigFile | None = None
        self._config_error: str | None = None
        self._loaded_from: Path | None = None

    @property
    def has_config_error(self) -> bool:
        """Check if there was an error loading config."""
        return self._config_error is not None

    @property
    def config_error(self) -> str | None:
        """Get the config error message if any."""
        return self._config_error

    def get_config(self) -> ConfigFile:
        """Get configuration, loading from file if not cached."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def log_status(self) -> None:
        """Log how the configuration was loaded.

        The file is read before logging is configured, so ``main`` calls
        this once the handlers are installed.
        """
        if self._config_error is not None:
            logger.warning("%s; using defaults", self._config_error)
        elif self._loaded_from is not None:
            logger.info("Loaded config from %s", self._loaded_from)
        else:
            logger.info("No config file at %s, using defaults", self.config_path)

    def reload(self) -> None:
        """Clear cached configuration, forcing reload on next access."""
        self._config = None
        self._config_error = None
        self._loaded_from = None

    def _load_config(self) -> ConfigFile:
        """Load configuration from file or return default."""
        name = self.config_path.name
        self._config_error = None

        if not self.config_path.exists():
            logger.debug("No %s found at %s, using defaults", name, self.config_path)
            return ConfigFile.default()

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)

            if data is None:
                self._loaded_from = self.config_path
                logger.debug("%s is empty, using defaults", name)
                return ConfigFile.default()
            if not isinstance(data, dict):
                self._config_error = f"{name} must contain a mapping of settings"
                logger.warning(self._config_error)
                return ConfigFile.default()

            config = ConfigFile(**data)
            self._loaded_from = self.config_path
            logger.info("Loaded %s", self.config_path)
            return config

        except yaml.YAMLError as e:
            self._config_error = f"Invalid YAML in {name}: {e}"
            logger.warning(self._config_error)
            return ConfigFile.default()

        except ValidationError as e:
            self._config_error = f"Invalid settings in {name}: {e}"
            logger.warning(self._config_error)
            return ConfigFile.default()

        except OSError as e:
            self._config_error = f"Error reading {name}: {e}"
            logger.warning(self._config_error)
            return ConfigFile.default()
