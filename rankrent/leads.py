from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any

from rankrent.areas import AreaData, area_slug, find_area, partition_areas
from rankrent.followup import calculate_next_follow_up, latest_note
from rankrent.http import ApiClient, unwrap_data
from rankrent.models import (
    LEAD_FIELDS,
    CallLog,
    Lead,
    call_log_from_storage,
    call_log_to_storage,
    lead_create_body,
    lead_from_api,
    lead_to_api,
    normalize_city,
)
from rankrent.state import (
    CALL_LOGS_KEY,
    CURRENT_AREA_KEY,
    LocalStorage,
    current_user_id,
    last_called_index_key,
)
from rankrent.utils import epoch_millis, parse_timestamp, utc_now
from rankrent.view import DEFAULT_SORT_DIRECTION, DEFAULT_SORT_FIELD, Filters, displayed_leads, next_sort

logger = logging.getLogger("rankrent.leads")


class LeadStore:
    """In-memory lead collection backed by the leads REST endpoint.

    Writes go to the backend first and only touch memory once the request
    succeeds. Call logs never reach the backend: they live in local storage
    under `callLogs`, keyed by lead id, and are merged in on every load.
    Concurrent writes to the same lead are last-write-wins.
    """

    def __init__(self, api: ApiClient, storage: LocalStorage, leads_path: str = "/api/leads") -> None:
        self.api = api
        self.storage = storage
        self.leads_path = leads_path.rstrip("/")

        self.leads: list[Lead] = []
        self.loading = False
        self.error: str | None = None
        self.filters = Filters()
        self.sort_field: str | None = DEFAULT_SORT_FIELD
        self.sort_direction = DEFAULT_SORT_DIRECTION

        self.current_area = storage.get_item(CURRENT_AREA_KEY) or ""
        self.last_called_index = self._read_last_called_index()

    def dispose(self) -> None:
        self.leads = []
        self.loading = False
        self.error = None

    # derived views

    @property
    def areas(self) -> list[AreaData]:
        return partition_areas(self.leads)

    @property
    def area_leads(self) -> list[Lead]:
        if not self.current_area:
            return list(self.leads)
        area = find_area(self.areas, self.current_area)
        return list(area.leads) if area else []

    @property
    def filtered_leads(self) -> list[Lead]:
        return displayed_leads(self.area_leads, self.filters, self.sort_field, self.sort_direction)

    def get(self, lead_id: str) -> Lead | None:
        for lead in self.leads:
            if lead.id == lead_id:
                return lead
        return None

    # loading

    def load(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.leads = self._fetch_leads(with_call_logs=True)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to load leads: %s", exc)
            self.error = str(exc) or "Failed to load leads"
            return
        finally:
            self.loading = False

        if not self.current_area and self.leads:
            self.current_area = area_slug(self.leads[0].city)
            self.storage.set_item(CURRENT_AREA_KEY, self.current_area)
            self.last_called_index = self._read_last_called_index()

    refresh = load

    def _fetch_leads(self, with_call_logs: bool) -> list[Lead]:
        payload = self.api.get_json(self.leads_path)
        records = unwrap_data(payload) or []
        leads = [lead_from_api(record) for record in records]
        logger.info("Fetched leads: %d", len(leads))
        if with_call_logs:
            stored = self._read_call_logs()
            for lead in leads:
                lead.call_logs = stored.get(lead.id, [])
        return leads

    # CRUD

    def _fail(self, exc: Exception, fallback: str) -> None:
        self.error = str(exc) or fallback
        logger.warning("%s: %s", fallback, exc)

    def _replace(self, updated: Lead) -> None:
        self.leads = [updated if lead.id == updated.id else lead for lead in self.leads]

    def create(self, data: dict[str, Any]) -> Lead:
        self.error = None
        try:
            body = lead_create_body(data, user_id=current_user_id(self.storage))
            created = lead_from_api(unwrap_data(self.api.post_json(self.leads_path, body)))
        except Exception as exc:
            self._fail(exc, "Failed to create lead")
            raise
        self.leads = [*self.leads, created]
        return created

    def update(self, lead_id: str, changes: dict[str, Any]) -> Lead | None:
        lead = self.get(lead_id)
        if lead is None:
            return None

        self.error = None
        try:
            unknown = set(changes) - LEAD_FIELDS
            if unknown:
                raise ValueError(f"Unknown lead fields: {', '.join(sorted(unknown))}")
            if "city" in changes:
                changes = {**changes, "city": normalize_city(changes["city"])}
            updated = dataclasses.replace(lead, **changes)
            self.api.put_json(self._lead_path(lead_id), lead_to_api(updated))
        except Exception as exc:
            self._fail(exc, "Failed to update lead")
            raise
        self._replace(updated)
        return updated

    def delete(self, lead_id: str) -> bool:
        self.error = None
        try:
            self.api.delete(self._lead_path(lead_id))
        except Exception as exc:
            self._fail(exc, "Failed to delete lead")
            raise
        self.leads = [lead for lead in self.leads if lead.id != lead_id]
        stored = self.storage.get_json(CALL_LOGS_KEY, {})
        if isinstance(stored, dict) and lead_id in stored:
            del stored[lead_id]
            self.storage.set_json(CALL_LOGS_KEY, stored)
        return True

    def toggle_contacted(self, lead_id: str) -> Lead | None:
        lead = self.get(lead_id)
        if lead is None:
            return None

        updated = dataclasses.replace(lead, contacted=not lead.contacted)
        self.error = None
        try:
            # only `contacted` goes out so concurrent edits to other fields survive
            self.api.put_json(self._lead_path(lead_id), lead_to_api(updated, ["contacted"]))
        except Exception as exc:
            self._fail(exc, "Failed to update lead status")
            raise
        self._replace(updated)
        return updated

    def _lead_path(self, lead_id: str) -> str:
        return f"{self.leads_path}/{lead_id}"

    # view state

    def set_current_area(self, area_id: str) -> None:
        previous = self.current_area
        self.current_area = area_id
        self.storage.set_item(CURRENT_AREA_KEY, area_id)

        self.filters = Filters()
        self._clear_last_called_index(previous)
        self._clear_last_called_index(area_id)
        self.sort_field = DEFAULT_SORT_FIELD
        self.sort_direction = DEFAULT_SORT_DIRECTION

    def set_filters(self, filters: Filters) -> None:
        self.filters = filters

    def handle_sort(self, field: str) -> None:
        self.sort_field, self.sort_direction = next_sort(self.sort_field, self.sort_direction, field)

    def clear_cache(self) -> None:
        self.storage.remove_item(last_called_index_key(self.current_area))
        self.storage.remove_item(CALL_LOGS_KEY)

        self.loading = True
        self.error = None
        try:
            self.leads = self._fetch_leads(with_call_logs=False)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to reload leads: %s", exc)
            self.error = str(exc) or "Failed to reload leads"
            return
        finally:
            self.loading = False

        self.last_called_index = None
        self.filters = Filters()
        self.sort_field = DEFAULT_SORT_FIELD
        self.sort_direction = DEFAULT_SORT_DIRECTION

    # last-called row pointer

    def _read_last_called_index(self) -> int | None:
        if not self.current_area:
            return None
        raw = self.storage.get_item(last_called_index_key(self.current_area))
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    def _clear_last_called_index(self, area_id: str) -> None:
        self.last_called_index = None
        if area_id:
            self.storage.remove_item(last_called_index_key(area_id))

    def set_last_called_index(self, index: int | None) -> None:
        if index is None:
            self._clear_last_called_index(self.current_area)
            return
        self.last_called_index = index
        self.storage.set_item(last_called_index_key(self.current_area), str(index))

    def consume_last_called_index(self) -> int | None:
        index = self.last_called_index
        if index is not None:
            self._clear_last_called_index(self.current_area)
        return index

    # call logs

    def _read_call_logs(self) -> dict[str, list[CallLog]]:
        stored = self.storage.get_json(CALL_LOGS_KEY, {})
        if not isinstance(stored, dict):
            return {}
        result: dict[str, list[CallLog]] = {}
        for lead_id, records in stored.items():
            if not isinstance(records, list):
                continue
            logs = []
            for record in records:
                try:
                    logs.append(call_log_from_storage(record, lead_id))
                except (KeyError, TypeError, ValueError, AttributeError) as exc:
                    logger.warning("Skipping unreadable call log for lead %s: %s", lead_id, exc)
            result[str(lead_id)] = logs
        return result

    def _save_call_logs(self, lead: Lead) -> None:
        stored = self.storage.get_json(CALL_LOGS_KEY, {})
        if not isinstance(stored, dict):
            stored = {}
        stored[lead.id] = [call_log_to_storage(log) for log in lead.call_logs]
        self.storage.set_json(CALL_LOGS_KEY, stored)

    def add_call_log(
        self,
        lead_id: str,
        outcome: str,
        notes: str,
        next_follow_up: str | None = None,
        duration: int | None = None,
        now: datetime | None = None,
    ) -> CallLog | None:
        lead = self.get(lead_id)
        if lead is None:
            return None

        call_date = parse_timestamp(now) if now is not None else utc_now()
        # ids are call_<millis>; step past any already taken on this lead
        millis = epoch_millis(call_date)
        taken = {existing.id for existing in lead.call_logs}
        while f"call_{millis}" in taken:
            millis += 1
        log = CallLog(
            id=f"call_{millis}",
            lead_id=lead_id,
            outcome=outcome,
            notes=notes,
            call_date=call_date,
            next_follow_up=next_follow_up or calculate_next_follow_up(outcome, call_date) or None,
            duration=duration,
        )

        self.error = None
        try:
            self.api.put_json(self._lead_path(lead_id), {"contacted": True, "notes": notes})
        except Exception as exc:
            self._fail(exc, "Failed to add call log")
            raise

        updated = dataclasses.replace(lead, call_logs=[*lead.call_logs, log], contacted=True, notes=notes)
        self._replace(updated)
        self._save_call_logs(updated)
        return log

    def update_call_log(
        self,
        lead_id: str,
        log_id: str,
        outcome: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> CallLog:
        lead = self.get(lead_id)
        if lead is None:
            raise KeyError(f"Lead not found: {lead_id}")
        existing = next((log for log in lead.call_logs if log.id == log_id), None)
        if existing is None:
            raise KeyError(f"Call log not found: {log_id}")

        changed = existing
        if outcome is not None and outcome != existing.outcome:
            changed = dataclasses.replace(
                changed,
                outcome=outcome,
                next_follow_up=calculate_next_follow_up(outcome, now) or None,
            )
        notes_changed = notes is not None and notes != existing.notes
        if notes_changed:
            changed = dataclasses.replace(changed, notes=notes)

        logs = [changed if log.id == log_id else log for log in lead.call_logs]
        updated = dataclasses.replace(lead, call_logs=logs)

        if notes_changed:
            preview = latest_note(updated)
            self.error = None
            try:
                self.api.put_json(self._lead_path(lead_id), {"notes": preview})
            except Exception as exc:
                self._fail(exc, "Failed to update call log")
                raise
            updated = dataclasses.replace(updated, notes=preview)

        self._replace(updated)
        self._save_call_logs(updated)
        return changed

    def delete_call_log(self, lead_id: str, log_id: str) -> None:
        lead = self.get(lead_id)
        if lead is None:
            raise KeyError(f"Lead not found: {lead_id}")
        updated = dataclasses.replace(lead, call_logs=[log for log in lead.call_logs if log.id != log_id])
        self._replace(updated)
        self._save_call_logs(updated)
