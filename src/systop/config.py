"""Configuration system for systop."""

from dataclasses import dataclass, field, fields
from pathlib import Path

import tomlkit


@dataclass
class MonitorConfig:
    """Sampling and history configuration."""

    history_capacity: int = 300  # CPU samples kept for the chart
    full_refresh_period: int = 60  # Frames between full process-table refreshes
    poll_timeout: float = 0.06  # Seconds between frames (~16 fps)
    background_refresh: bool = False  # Read the process table off the draw loop

    def validate(self) -> None:
        """Raise ValueError for settings the monitor cannot run with."""
        if self.history_capacity < 1:
            raise ValueError(f"history_capacity must be >= 1, got {self.history_capacity}")
        if self.full_refresh_period < 1:
            raise ValueError(
                f"full_refresh_period must be >= 1, got {self.full_refresh_period}"
            )
        if self.poll_timeout <= 0:
            raise ValueError(f"poll_timeout must be > 0, got {self.poll_timeout}")


@dataclass
class LogConfig:
    """Log file configuration."""

    level: str = "INFO"
    max_bytes: int = 1024 * 1024  # Max log file size (1MB)
    backup_count: int = 2  # Number of rotated files to keep


@dataclass
class Config:
    """Main configuration container."""

    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def config_dir(self) -> Path:
        """Directory holding config.toml."""
        return Path.home() / ".config" / "systop"

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """Directory for runtime state such as the log file."""
        return Path.home() / ".local" / "state" / "systop"

    @property
    def log_path(self) -> Path:
        return self.state_dir / "systop.log"

    def to_toml(self) -> str:
        """Render the configuration as a TOML document."""
        doc = tomlkit.document()
        doc.add(tomlkit.comment("systop configuration"))
        doc.add(tomlkit.nl())
        for name, section in (("monitor", self.monitor), ("log", self.log)):
            table = tomlkit.table()
            for f in fields(section):
                table.add(f.name, getattr(section, f.name))
            doc.add(name, table)
        return tomlkit.dumps(doc)

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_toml())

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file cannot be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        monitor_data = data.get("monitor", {})
        log_data = data.get("log", {})
        mon_defaults = defaults.monitor
        log_defaults = defaults.log

        background_refresh = monitor_data.get(
            "background_refresh", mon_defaults.background_refresh
        )
        if not isinstance(background_refresh, bool):
            raise ValueError(
                f"Invalid value in config file {path}: "
                f"background_refresh must be true or false, got {background_refresh!r}"
            )

        try:
            monitor = MonitorConfig(
                history_capacity=int(
                    monitor_data.get("history_capacity", mon_defaults.history_capacity)
                ),
                full_refresh_period=int(
                    monitor_data.get("full_refresh_period", mon_defaults.full_refresh_period)
                ),
                poll_timeout=float(monitor_data.get("poll_timeout", mon_defaults.poll_timeout)),
                background_refresh=background_refresh,
            )
            log = LogConfig(
                level=str(log_data.get("level", log_defaults.level)).upper(),
                max_bytes=int(log_data.get("max_bytes", log_defaults.max_bytes)),
                backup_count=int(log_data.get("backup_count", log_defaults.backup_count)),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value in config file {path}: {e}") from e

        monitor.validate()
        return cls(monitor=monitor, log=log)
