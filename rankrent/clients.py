from __future__ import annotations

import dataclasses
import logging
from typing import Any

from rankrent.http import ApiClient, unwrap_data
from rankrent.models import CLIENT_FIELDS, Client, client_from_api, client_to_api

logger = logging.getLogger("rankrent.clients")

CLIENT_SORT_FIELDS = ("name", "email", "phone", "city", "website", "reviews")


class ClientStore:
    def __init__(self, api: ApiClient, clients_path: str = "/clients") -> None:
        self.api = api
        self.clients_path = clients_path.rstrip("/")
        self.clients: list[Client] = []
        self.loading = False
        self.error: str | None = None
        self.sort_field: str | None = "name"
        self.sort_direction = "asc"

    def dispose(self) -> None:
        self.clients = []
        self.loading = False
        self.error = None

    @property
    def sorted_clients(self) -> list[Client]:
        if self.sort_field is None:
            return list(self.clients)
        field = self.sort_field
        return sorted(
            self.clients,
            key=lambda client: str(getattr(client, field) if getattr(client, field) is not None else "").lower(),
            reverse=self.sort_direction == "desc",
        )

    def handle_sort(self, field: str) -> None:
        if field not in CLIENT_SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {field}")
        if field == self.sort_field:
            self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"
        else:
            self.sort_field = field
            self.sort_direction = "asc"

    def get(self, client_id: str) -> Client | None:
        return next((client for client in self.clients if client.id == client_id), None)

    def load(self) -> None:
        self.loading = True
        self.error = None
        try:
            records = unwrap_data(self.api.get_json(self.clients_path)) or []
            self.clients = [client_from_api(record) for record in records]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to load clients: %s", exc)
            self.error = str(exc) or "Failed to load clients"
        finally:
            self.loading = False

    def _fail(self, exc: Exception, fallback: str) -> None:
        self.error = str(exc) or fallback
        logger.warning("%s: %s", fallback, exc)

    def create(self, data: dict[str, Any]) -> Client:
        self.error = None
        try:
            draft = Client(id="", name=data.get("name") or "")
            draft = dataclasses.replace(draft, **{k: v for k, v in data.items() if k in CLIENT_FIELDS and k != "id"})
            created = client_from_api(unwrap_data(self.api.post_json(self.clients_path, client_to_api(draft))))
        except Exception as exc:
            self._fail(exc, "Failed to create client")
            raise
        self.clients = [*self.clients, created]
        return created

    def update(self, client_id: str, changes: dict[str, Any]) -> Client:
        self.error = None
        try:
            client = self.get(client_id)
            if client is None:
                raise KeyError(f"Client not found: {client_id}")
            unknown = set(changes) - CLIENT_FIELDS
            if unknown:
                raise ValueError(f"Unknown client fields: {', '.join(sorted(unknown))}")
            merged = dataclasses.replace(client, **changes)
            response = unwrap_data(self.api.put_json(f"{self.clients_path}/{client_id}", client_to_api(merged)))
            updated = client_from_api(response) if isinstance(response, dict) and "id" in response else merged
        except Exception as exc:
            self._fail(exc, "Failed to update client")
            raise
        self.clients = [updated if c.id == client_id else c for c in self.clients]
        return updated

    def delete(self, client_id: str) -> None:
        self.error = None
        try:
            self.api.delete(f"{self.clients_path}/{client_id}")
        except Exception as exc:
            self._fail(exc, "Failed to delete client")
            raise
        self.clients = [c for c in self.clients if c.id != client_id]

    def toggle_contacted(self, client_id: str) -> Client | None:
        client = self.get(client_id)
        if client is None:
            return None
        updated = dataclasses.replace(client, contacted=not client.contacted)
        self.error = None
        try:
            self.api.put_json(f"{self.clients_path}/{client_id}", client_to_api(updated, ["contacted"]))
        except Exception as exc:
            self._fail(exc, "Failed to update contact status")
            raise
        self.clients = [updated if c.id == client_id else c for c in self.clients]
        return updated
