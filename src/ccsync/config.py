"""Configuration management for the ccsync application."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file from config directory or project root
config_env = Path(__file__).parent.parent.parent / "config" / ".env"
if config_env.exists():
    load_dotenv(config_env)
else:
    # Fallback to project root .env
    load_dotenv()


class Config:
    """Application configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        base_dir = Path.home() / ".ccswitch"

        # Storage locations
        self.database_path = Path(
            os.getenv("CCSYNC_DATABASE_PATH", str(base_dir / "ccsync.db"))
        )
        self.cloud_store_path = Path(
            os.getenv(
                "CCSYNC_CLOUD_STORE_PATH", str(base_dir / "cloud" / "kvstore.json")
            )
        )

        # Sync timing
        self.debounce_seconds = float(os.getenv("CCSYNC_DEBOUNCE_SECONDS", "2"))
        self.success_decay_seconds = float(
            os.getenv("CCSYNC_SUCCESS_DECAY_SECONDS", "2")
        )
        self.max_retry_attempts = int(os.getenv("CCSYNC_MAX_RETRY_ATTEMPTS", "3"))

        # Reachability probing (disabled when no host is configured)
        self.probe_host: Optional[str] = os.getenv("CCSYNC_PROBE_HOST", "") or None
        self.probe_port = int(os.getenv("CCSYNC_PROBE_PORT", "443"))
        self.probe_interval = float(os.getenv("CCSYNC_PROBE_INTERVAL", "30"))

        # File watching in `watch`: OS notifications, or stat polling for
        # network mounts that do not deliver them
        self.watch_polling = os.getenv("CCSYNC_WATCH_POLLING", "false").lower() in (
            "1",
            "true",
            "yes",
        )
        self.poll_interval = float(os.getenv("CCSYNC_POLL_INTERVAL", "5"))

        # Claude settings written by `vendors use`
        self.claude_settings_path = Path(
            os.getenv(
                "CCSYNC_CLAUDE_SETTINGS_PATH",
                str(Path.home() / ".claude" / "settings.json"),
            )
        )
        self.max_settings_backups = int(os.getenv("CCSYNC_MAX_SETTINGS_BACKUPS", "10"))

        # Ensure directories exist
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Ensure required directories exist."""
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self.cloud_store_path.parent.mkdir(parents=True, exist_ok=True)


def get_config() -> Config:
    """Get application configuration."""
    return Config()
