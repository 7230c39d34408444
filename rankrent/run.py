from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rankrent.clients import ClientStore
from rankrent.config import DEFAULT_CONFIG_PATH, default_config, load_config
from rankrent.http import ApiClient
from rankrent.leads import LeadStore
from rankrent.state import LocalStorage

logger = logging.getLogger("rankrent.run")


@dataclass
class Dashboard:
    config: dict
    storage: LocalStorage
    api: ApiClient
    leads: LeadStore
    clients: ClientStore

    def dispose(self) -> None:
        self.leads.dispose()
        self.clients.dispose()


def resolve_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    # The default path is optional; an explicitly named file must exist.
    if config_path == DEFAULT_CONFIG_PATH and not Path(config_path).exists():
        logger.info("No config at %s, using defaults", config_path)
        return default_config()
    return load_config(config_path)


def build_dashboard(config: dict) -> Dashboard:
    storage = LocalStorage(config["storage"]["path"])
    api_cfg = config["api"]
    api = ApiClient(
        base_url=api_cfg["base_url"],
        storage=storage,
        timeout_seconds=int(api_cfg["timeout_seconds"]),
        max_retries=int(api_cfg["max_retries"]),
    )
    return Dashboard(
        config=config,
        storage=storage,
        api=api,
        leads=LeadStore(api, storage, leads_path=api_cfg["leads_path"]),
        clients=ClientStore(api, clients_path=api_cfg["clients_path"]),
    )
