from __future__ import annotations

import time
from threading import Event, Thread, current_thread

from .events import log_event
from .executor import CmdExecutor
from .reconciler import needs_update, parse_probe_output, strip_managed
from .registration import RegistrationAdapter, ServiceRegistry


class TagIt:
    """Keeps one service's ``<prefix>-*`` tags in line with a script's output."""

    def __init__(
        self,
        registry: ServiceRegistry,
        executor: CmdExecutor,
        service_id: str,
        script: str,
        interval_s: float,
        tag_prefix: str,
    ):
        self.service_id = service_id
        self.script = script
        self.interval_s = float(interval_s)
        self.tag_prefix = tag_prefix
        self.executor = executor
        self.adapter = RegistrationAdapter(registry)
        self._stop = Event()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = Thread(target=self.run, daemon=True)
        self._thr.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thr and self._thr is not current_thread():
            self._thr.join(timeout)

    def run(self, stop: Event | None = None) -> None:
        """Run a pass every ``interval_s`` seconds until stopped.

        ``stop``, when given, becomes the event ``self.stop()`` sets, so either ends the loop.

        Ticks that would have fired while a pass was still running are dropped.
        """
        if self.interval_s <= 0:
            raise ValueError("interval must be positive")
        if stop is not None:
            self._stop = stop
        if self._thr is None or not self._thr.is_alive():
            self._thr = current_thread()
        log_event(
            "INFO",
            "Starting tagit",
            service_id=self.service_id,
            script=self.script,
            interval=f"{self.interval_s:g}s",
            tag_prefix=self.tag_prefix,
        )
        next_tick = time.monotonic() + self.interval_s
        while not self._stop.wait(max(0.0, next_tick - time.monotonic())):
            self._tick()
            next_tick += self.interval_s
            now = time.monotonic()
            if next_tick <= now:
                missed = int((now - next_tick) // self.interval_s) + 1
                next_tick += missed * self.interval_s
        log_event("INFO", "Tagit has stopped", service_id=self.service_id)

    def _tick(self) -> None:
        try:
            self.update_service_tags()
        except Exception as e:
            log_event(
                "ERROR",
                "error updating service tags",
                service_id=self.service_id,
                error_type=type(e).__name__,
                error=str(e),
            )

    def update_service_tags(self) -> bool:
        """One reconciliation pass. Returns True if the registration was rewritten."""
        candidate = parse_probe_output(self._run_script(), self.tag_prefix)
        service = self.adapter.fetch(self.service_id)
        new_tags, should_write = needs_update(service.tags, candidate, self.tag_prefix)
        if not should_write:
            return False
        self.adapter.apply(service, new_tags)
        log_event("INFO", "updated service tags", service_id=self.service_id, tags=new_tags)
        return True

    def cleanup_tags(self) -> bool:
        """Remove every managed tag from the service. Returns True if anything was removed."""
        service = self.adapter.fetch(self.service_id)
        new_tags, should_write = strip_managed(service.tags, self.tag_prefix)
        if not should_write:
            log_event("INFO", "no tags to clean up", service_id=self.service_id, tag_prefix=self.tag_prefix)
            return False
        self.adapter.apply(service, new_tags)
        log_event("INFO", "cleaned up service tags", service_id=self.service_id, tags=new_tags)
        return True

    def _run_script(self) -> bytes:
        log_event("INFO", "running command", service_id=self.service_id, command=self.script)
        return self.executor.execute(self.script)
