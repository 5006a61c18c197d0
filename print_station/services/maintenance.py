"""Background jobs: expired OTP purge and the production keep-alive ping."""
from __future__ import annotations

import logging

import httpx
from apscheduler.schedulers.background import BackgroundScheduler

from print_station.config import Settings
from print_station.services.otp import purge_expired_otps

log = logging.getLogger("uvicorn.error")


def keep_alive_ping(url: str, timeout: float = 10.0) -> bool:
    try:
        r = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        log.warning("Keep-alive ping to %s failed: %s", url, e)
        return False
    log.info("Keep-alive ping %s -> %s", url, r.status_code)
    return r.status_code < 500


def build_scheduler(settings: Settings) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        purge_expired_otps,
        "interval",
        minutes=settings.otp_purge_interval_minutes,
        id="purge_expired_otps",
        replace_existing=True,
    )
    if settings.is_production and settings.keep_alive_url:
        scheduler.add_job(
            keep_alive_ping,
            "interval",
            minutes=settings.keep_alive_interval_minutes,
            args=[settings.keep_alive_url],
            id="keep_alive",
            replace_existing=True,
        )
    return scheduler


def start_scheduler(settings: Settings) -> BackgroundScheduler | None:
    if not settings.scheduler_enabled or settings.app_env.lower() == "test":
        return None
    try:
        scheduler = build_scheduler(settings)
        scheduler.start()
    except Exception as e:
        log.warning("Scheduler failed to start: %s", e)
        return None
    log.info("Scheduler started with jobs: %s", ", ".join(j.id for j in scheduler.get_jobs()))
    return scheduler
