from __future__ import annotations

import copy
import os
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config/rankrent.yaml"
BASE_URL_ENV = "RANKRENT_API_BASE_URL"

DEFAULT_SPA_FILES = [
    "_redirects",
    "vercel.json",
    "netlify.toml",
    "render.yaml",
    "404.html",
]

DEFAULTS = {
    "api": {
        "base_url": "http://localhost:3000",
        "timeout_seconds": 10,
        "max_retries": 3,
        "leads_path": "/api/leads",
        "clients_path": "/clients",
    },
    "storage": {
        "path": "state/local_storage.json",
    },
    "spa": {
        "source_dir": ".",
        "build_dir": "dist",
        "files": DEFAULT_SPA_FILES,
    },
}


def _ensure_mapping(config: dict, key: str) -> dict:
    section = config.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"{key} must be a mapping")
    return section


def _ensure_type(section: dict, key: str, section_name: str, expected: type, label: str) -> None:
    if key not in section:
        return
    value = section[key]
    # bool is an int subclass; a YAML `true` is never a valid count
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ValueError(f"{section_name}.{key} must be {label}")


def _validate(config: dict) -> None:
    api = _ensure_mapping(config, "api")
    for key in ["base_url", "leads_path", "clients_path"]:
        _ensure_type(api, key, "api", str, "a string")
    for key in ["timeout_seconds", "max_retries"]:
        _ensure_type(api, key, "api", int, "an integer")
    if api.get("max_retries", 1) < 1:
        raise ValueError("api.max_retries must be at least 1")

    storage = _ensure_mapping(config, "storage")
    _ensure_type(storage, "path", "storage", str, "a string")

    spa = _ensure_mapping(config, "spa")
    for key in ["source_dir", "build_dir"]:
        _ensure_type(spa, key, "spa", str, "a string")
    if "files" in spa:
        files = spa["files"]
        if not isinstance(files, list) or not all(isinstance(name, str) for name in files):
            raise ValueError("spa.files must be a list of file names")


def _apply_defaults(config: dict) -> dict:
    for section_name, defaults in DEFAULTS.items():
        section = config.get(section_name) or {}
        for key, value in defaults.items():
            section.setdefault(key, copy.deepcopy(value))
        config[section_name] = section

    env_base_url = os.environ.get(BASE_URL_ENV)
    if env_base_url:
        config["api"]["base_url"] = env_base_url

    return config


def default_config() -> dict:
    return _apply_defaults({})


def load_config(path: str = DEFAULT_CONFIG_PATH) -> dict:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with config_path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}

    if not isinstance(loaded, dict):
        raise ValueError("Top-level config must be a YAML mapping")

    _validate(loaded)
    return _apply_defaults(loaded)
