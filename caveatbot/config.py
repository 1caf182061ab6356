"""
Configuration management for CaveatBot.

Priority order for each setting:
1. Environment variable (CAVEATBOT_SESSIONS_DIR, CAVEATBOT_NAMING_MODE),
   including values from a .env file in the working directory
2. ~/.caveatbot/config.json
3. Dataclass defaults
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv

CONFIG_PATH = Path.home() / ".caveatbot" / "config.json"
DEFAULT_SESSIONS_DIR = "~/.caveatbot/recording-sessions"


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


@dataclass
class StorageConfig:
    """Where session records live."""

    sessions_dir: str = DEFAULT_SESSIONS_DIR

    @property
    def path(self) -> Path:
        return Path(self.sessions_dir).expanduser()


@dataclass
class CaptureConfig:
    """Configuration for automatic capture."""

    # Ask before recording each code change; False records every change
    confirm_code_changes: bool = True
    track_terminal_on_activate: bool = True


@dataclass
class NamingConfig:
    """
    Configuration for session naming.

    Modes:
    - "heuristic": first words of the description
    - "llm": Anthropic model, heuristic fallback on failure
    """

    mode: Literal["heuristic", "llm"] = "heuristic"
    model: str = "claude-3-5-haiku-latest"
    max_words: int = 3
    temperature: float = 0.2
    max_tokens: int = 250


@dataclass
class RecorderConfig:
    """Complete CaveatBot configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    naming: NamingConfig = field(default_factory=NamingConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "RecorderConfig":
        """Load configuration from file, then apply environment overrides."""
        if path is None:
            path = CONFIG_PATH

        env_file = Path.cwd() / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        data: dict[str, Any] = {}
        if path.exists():
            try:
                data = json.loads(path.read_text())
            except (json.JSONDecodeError, OSError):
                # Use defaults on error
                data = {}

        config = cls(
            storage=StorageConfig(**_filter_dataclass_fields(data.get("storage", {}), StorageConfig)),
            capture=CaptureConfig(**_filter_dataclass_fields(data.get("capture", {}), CaptureConfig)),
            naming=NamingConfig(**_filter_dataclass_fields(data.get("naming", {}), NamingConfig)),
        )

        sessions_dir = os.getenv("CAVEATBOT_SESSIONS_DIR")
        if sessions_dir:
            config.storage.sessions_dir = sessions_dir
        naming_mode = os.getenv("CAVEATBOT_NAMING_MODE")
        if naming_mode in ("heuristic", "llm"):
            config.naming.mode = naming_mode

        return config

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(
                {
                    "storage": asdict(self.storage),
                    "capture": asdict(self.capture),
                    "naming": asdict(self.naming),
                },
                f,
                indent=2,
            )


# Default configuration instance
default_config = RecorderConfig()
