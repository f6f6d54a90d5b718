import copy
import yaml  # from PyYAML
from pathlib import Path
from typing import Dict, Any, Optional

DEFAULT_CONFIG_FILENAMES = ["config.yaml", "config.yml"]

DEFAULT_APP_CONFIG: Dict[str, Any] = {
    "general": {
        "verbose": False,
        "project_root": None,  # Set by the CLI from its positional argument
    },
    "call_graph": {
        # Directory names skipped anywhere below the repository root
        "ignored_dirs": [".venv", "venv", ".env", "env", "node_modules", ".git", "__pycache__", "build", "dist"],
        "ignored_files": ["setup.py"],
        # Treat PascalCase callees as constructor calls (Foo() -> Foo.__init__)
        "resolve_constructors": True,
        # Seal the graph once the repository has been walked
        "seal_after_build": True,
    },
}


def merge_configs(
    base_config: Dict[str, Any], user_config: Dict[str, Any]
) -> Dict[str, Any]:
    merged = base_config.copy()
    for key, value in user_config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_app_config(config_file_path: Optional[Path] = None) -> Dict[str, Any]:
    # Deep copy so callers can tweak nested sections without touching the defaults
    current_config = copy.deepcopy(DEFAULT_APP_CONFIG)

    file_to_load: Optional[Path] = None

    if config_file_path and config_file_path.is_file():
        file_to_load = config_file_path
    else:
        if config_file_path:
            print(f"ConfigLoader Warning: Config file {config_file_path} not found. Searching default locations.")
        for filename in DEFAULT_CONFIG_FILENAMES:
            default_path = Path.cwd() / filename
            if default_path.is_file():
                file_to_load = default_path
                break

    if file_to_load:
        try:
            with open(file_to_load, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f)
            if isinstance(user_config, dict):
                current_config = merge_configs(current_config, user_config)
            elif user_config is not None:
                print(
                    f"ConfigLoader Warning: Top level of {file_to_load} is not a mapping. Using defaults."
                )
            if current_config["general"].get("verbose"):
                print(f"ConfigLoader: Loaded configuration from {file_to_load}")
        except yaml.YAMLError as e_yaml:
            print(
                f"ConfigLoader Warning: Error parsing YAML config file {file_to_load}: {e_yaml}. Using defaults."
            )
        except OSError as e_io:
            print(
                f"ConfigLoader Warning: Error loading config file {file_to_load}: {e_io}. Using defaults."
            )

    return current_config


def get_default_config_yaml_example() -> str:
    return yaml.dump(DEFAULT_APP_CONFIG, sort_keys=False, indent=2)
