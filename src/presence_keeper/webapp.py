"""FastAPI application exposing the keep-alive monitor's status."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict

from .config import KeepAliveSettings
from .holidays import HolidayLookup, OpenHolidaysClient
from .monitor import KeepAliveMonitor
from .schedule import WorkingHoursScheduler

logger = logging.getLogger(__name__)

MonitorFactory = Callable[[], KeepAliveMonitor]


class MonitorRunner:
    """Manage the keep-alive monitor in a background thread."""

    def __init__(self, factory: MonitorFactory) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self.monitor: Optional[KeepAliveMonitor] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            monitor = self._factory()
            thread = threading.Thread(
                target=monitor.run_until_stopped,
                args=(stop_event,),
                daemon=True,
            )
            self.monitor = monitor
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Monitor background thread started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Monitor background thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())


class ScheduleResponse(BaseModel):
    should_run: bool
    reason: str
    messages: list[str]
    next_run_time: Optional[datetime] = None
    bypass_reasons: list[str]
    checked_at: datetime

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    settings: Optional[KeepAliveSettings] = None,
    holidays: Optional[HolidayLookup] = None,
    monitor_factory: Optional[MonitorFactory] = None,
    autostart: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_settings = settings or KeepAliveSettings()
    scheduler = WorkingHoursScheduler(resolved_settings.schedule, holidays or OpenHolidaysClient())

    def _default_factory() -> KeepAliveMonitor:
        from .probe import WindowsInputProbe

        return KeepAliveMonitor(resolved_settings, scheduler, WindowsInputProbe())

    runner = MonitorRunner(monitor_factory or _default_factory)

    app = FastAPI(title="Presence Keeper", version="0.1.0")
    app.state.monitor_runner = runner
    app.state.scheduler = scheduler

    @app.on_event("startup")
    async def _startup() -> None:
        if autostart:
            runner.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runner.stop()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current: MonitorRunner = request.app.state.monitor_runner
        monitor_status = current.monitor.status() if current.monitor else None
        return {
            "monitor_running": current.is_running(),
            "method": resolved_settings.method,
            "wait_seconds": [
                resolved_settings.wait_min.total_seconds(),
                resolved_settings.wait_max.total_seconds(),
            ],
            "monitor": monitor_status,
        }

    @app.get("/api/schedule", response_model=ScheduleResponse)
    def schedule(
        request: Request,
        at: Optional[str] = Query(
            default=None,
            description="Moment to evaluate in ISO format. Defaults to now.",
        ),
    ) -> ScheduleResponse:
        moment = _parse_moment(at)
        verdict = request.app.state.scheduler.check(moment)
        return ScheduleResponse(
            should_run=verdict.should_run,
            reason=verdict.reason,
            messages=verdict.messages,
            next_run_time=verdict.next_run_time,
            bypass_reasons=verdict.bypass_reasons,
            checked_at=moment,
        )

    @app.post("/api/monitor/start")
    def start_monitor(request: Request) -> Dict[str, Any]:
        request.app.state.monitor_runner.start()
        return {"monitor_running": request.app.state.monitor_runner.is_running()}

    @app.post("/api/monitor/stop")
    def stop_monitor(request: Request) -> Dict[str, Any]:
        request.app.state.monitor_runner.stop()
        return {"monitor_running": request.app.state.monitor_runner.is_running()}

    return app


def _parse_moment(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=400, detail="at must be an ISO date-time (YYYY-MM-DDTHH:MM)"
        ) from exc
