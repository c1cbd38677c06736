"""Configuration loading and management.

This module provides unified configuration management with:
- Type-safe configuration classes using dataclasses
- Environment variable substitution
- Single source of truth for all components
"""

import logging
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# ============================================================
# Configuration Data Classes
# ============================================================

@dataclass
class AppSettings:
    """Application-level settings."""
    name: str = "tickflow"
    version: str = "0.1.0"
    log_level: str = "INFO"


@dataclass
class SchedulerConfig:
    """Tick loop configuration."""
    loop_delay_ms: int = 20         # Control period
    max_errors: int = 10            # Consecutive failing ticks before stopping
    stop_when_idle: bool = True
    register_signals: bool = True


@dataclass
class DiagnosticsConfig:
    """Where safety diagnostics go."""
    logger_name: str = "tickflow.diagnostics"
    level: str = "ERROR"            # Minimum level for emitted diagnostics

    @property
    def level_number(self) -> int:
        return getattr(logging, self.level.upper(), logging.ERROR)


@dataclass
class DemoConfig:
    """Inputs for the demo routine run by main.py."""
    run_seconds: float = 0.5
    override: bool = False
    battery_ok: bool = True


@dataclass
class AppConfig:
    """Main application configuration container.

    Example:
        >>> config = AppConfig.from_yaml("config/settings.yaml")
        >>> loop = TickLoop(scheduler, config.tick_loop_config())
    """
    app: AppSettings = field(default_factory=AppSettings)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    demo: DemoConfig = field(default_factory=DemoConfig)

    # Path to the config file (for reference/logging)
    _config_path: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: dict, config_path: Optional[str] = None) -> "AppConfig":
        """Create AppConfig from dictionary.

        Args:
            data: Configuration dictionary.
            config_path: Optional path for logging purposes.

        Returns:
            Populated AppConfig instance.
        """
        return cls(
            app=AppSettings(**data.get("app", {})),
            scheduler=SchedulerConfig(**data.get("scheduler", {})),
            diagnostics=DiagnosticsConfig(**data.get("diagnostics", {})),
            demo=DemoConfig(**data.get("demo", {})),
            _config_path=config_path,
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Populated AppConfig instance.

        Raises:
            FileNotFoundError: If config file not found.
            yaml.YAMLError: If YAML parsing fails.
        """
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path) as f:
            content = f.read()

        # Substitute environment variables
        content = _substitute_env_vars(content)

        data = yaml.safe_load(content) or {}

        logger.info(f"Loaded configuration from {config_path}")
        return cls.from_dict(data, config_path=str(path.absolute()))

    @property
    def config_path(self) -> Optional[str]:
        return self._config_path

    def tick_loop_config(self):
        """Build the TickLoopConfig for this configuration."""
        from tickflow.scheduler.task_manager import TickLoopConfig

        return TickLoopConfig(
            loop_delay_ms=self.scheduler.loop_delay_ms,
            max_errors=self.scheduler.max_errors,
            stop_when_idle=self.scheduler.stop_when_idle,
            register_signals=self.scheduler.register_signals,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "app": asdict(self.app),
            "scheduler": asdict(self.scheduler),
            "diagnostics": asdict(self.diagnostics),
            "demo": asdict(self.demo),
        }


# ============================================================
# Helper Functions
# ============================================================

def _substitute_env_vars(content: str) -> str:
    """Substitute ${VAR_NAME} patterns with environment variable values.

    Args:
        content: String content with potential ${VAR} patterns.

    Returns:
        String with environment variables substituted.
    """
    pattern = r'\$\{([^}]+)\}'

    def replacer(match):
        var_name = match.group(1)
        value = os.environ.get(var_name, "")
        if not value:
            logger.warning(f"Environment variable not set: {var_name}")
        return value

    return re.sub(pattern, replacer, content)
