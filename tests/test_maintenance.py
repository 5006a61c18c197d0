"""Background job wiring."""
import httpx

from print_station.config import get_settings
from print_station.services import maintenance


def test_scheduler_not_started_in_tests():
    assert maintenance.start_scheduler(get_settings()) is None


def test_build_scheduler_jobs():
    dev = get_settings().model_copy(update={"app_env": "development", "keep_alive_url": "https://example.com/health"})
    assert [j.id for j in maintenance.build_scheduler(dev).get_jobs()] == ["purge_expired_otps"]

    prod = dev.model_copy(update={"app_env": "production"})
    assert {j.id for j in maintenance.build_scheduler(prod).get_jobs()} == {"purge_expired_otps", "keep_alive"}


def test_keep_alive_ping(monkeypatch):
    monkeypatch.setattr(maintenance.httpx, "get", lambda url, timeout: httpx.Response(200))
    assert maintenance.keep_alive_ping("https://example.com/health") is True

    def boom(url, timeout):
        raise httpx.ConnectError("down")

    monkeypatch.setattr(maintenance.httpx, "get", boom)
    assert maintenance.keep_alive_ping("https://example.com/health") is False
