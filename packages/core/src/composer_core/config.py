import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "data_dir": ".composer",
    "telemetry": "file",  # "file" | "off"
    "max_generations_per_site": 50,
    "max_navigation_per_site": 5,
    "max_telemetry_events": None,  # None = unbounded hint / tab usage logs
    "concurrency": "last-writer-wins",  # or "exclusive" to lock around read-modify-write
    "lock_timeout": 5.0,
    "poll_interval": 5,
    "websites": [],  # declared website URLs, used to label base URLs in stats
}


def load_config(config_path: str = ".composer.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .composer.yml in the current directory
      3. COMPOSER_DATA_DIR environment variable (data_dir only)
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "websites": list(DEFAULT_CONFIG["websites"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    data_dir = os.environ.get("COMPOSER_DATA_DIR")
    if data_dir:
        config["data_dir"] = data_dir

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config
