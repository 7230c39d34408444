from pathlib import Path

from rankrent.config import BASE_URL_ENV, default_config
from rankrent.run import build_dashboard, resolve_config


def test_build_dashboard_wires_shared_storage(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(BASE_URL_ENV, raising=False)
    config = default_config()
    config["storage"]["path"] = str(tmp_path / "ls.json")
    config["api"]["leads_path"] = "/v2/leads"

    dashboard = build_dashboard(config)

    assert dashboard.api.url_for("/x") == "http://localhost:3000/x"
    assert dashboard.leads.storage is dashboard.storage
    assert dashboard.leads.leads_path == "/v2/leads"
    assert dashboard.clients.clients_path == "/clients"

    dashboard.leads.leads = ["stale"]
    dashboard.dispose()
    assert dashboard.leads.leads == []


def test_resolve_config_falls_back_to_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(BASE_URL_ENV, raising=False)
    assert resolve_config()["api"]["base_url"] == "http://localhost:3000"
