"""Structured logging: console, JSONL event file, and external-call logs."""

import contextvars
import json
import logging
import os
import sys
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from webresearch.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        if s < 0.05:
            return f"{m}m"
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m {s:.1f}s"
    if seconds >= 0.05:
        return f"{seconds:.1f}s"
    if seconds > 0:
        return "<0.1s"
    return "0s"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed source task)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


_RUN_SEP = "  " + "─" * 42 + "  "
_log_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_run_id", default=None
)
_log_run_start: contextvars.ContextVar[float | None] = contextvars.ContextVar(
    "log_run_start", default=None
)


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stdout.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    # 38;5;N = foreground 256-color
    codes = {
        "dim": "\033[38;5;239m",
        "source": "\033[38;5;81m",
        "run": "\033[38;5;78m",
        "done_ok": "\033[38;5;78m",
        "done_fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
        "model": "\033[38;5;245m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class ResearchLogger:
    def __init__(self):
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = config.logs_dir / "webresearch.log"
        self.external_dir = config.logs_dir / "external"
        self.external_dir.mkdir(exist_ok=True)
        self._file_lock = threading.Lock()
        self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("webresearch")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(logging.INFO)
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)

    def log_event(self, event: LogEvent) -> None:
        run_id = _log_run_id.get()
        if run_id is not None:
            event.data.setdefault("run_id", run_id)
        with self._file_lock:
            self._log_file_handle.write(event.to_json() + "\n")
            self._log_file_handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _prefix(self) -> str:
        if _log_run_id.get() is not None:
            return "  │ "
        return ""

    def aggregation_start(
        self,
        run_id: str,
        topic: str,
        sources: list[str],
        project_id: str,
        stage_id: str,
    ) -> None:
        _log_run_id.set(run_id)
        _log_run_start.set(time.monotonic())
        event = LogEvent(
            event_type="AGGREGATION_START",
            timestamp=self._timestamp(),
            data={
                "topic": topic,
                "sources": sources,
                "project_id": project_id,
                "stage_id": stage_id,
            },
        )
        self.log_event(event)
        self.console.info(
            f"{_c('run')}▶ Research{_reset()}  {topic[:80]!r}  sources={','.join(sources)}"
        )

    def task_result(
        self,
        category: str,
        query: str,
        status: str,
        result_count: int,
        elapsed_seconds: float,
        *,
        error_reason: str | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "category": category,
            "query": query,
            "status": status,
            "result_count": result_count,
            "duration_seconds": round(elapsed_seconds, 3),
        }
        if error_reason:
            data["error_reason"] = error_reason[:500]
        self.log_event(
            LogEvent(event_type="TASK_RESULT", timestamp=self._timestamp(), data=data)
        )
        dur = f"{_c('duration')}{_format_duration(elapsed_seconds)}{_reset()}"
        if status in ("ok", "empty"):
            status_str = f"{_c('done_ok')}[{status}]{_reset()}"
        else:
            reason = _short_reason(error_reason)
            status_str = f"{_c('done_fail')}[{status}]{_reset()}"
            if reason:
                status_str += f" {reason}"
        self.console.info(
            f"{self._prefix()}{_c('source')}{category}{_reset()}  {query[:60]!r}  "
            f"{result_count} results  {dur}  {status_str}"
        )

    def aggregation_done(
        self,
        total_results: int,
        source_breakdown: dict[str, int],
        success: bool,
        *,
        error_reason: str | None = None,
    ) -> None:
        start = _log_run_start.get()
        elapsed = (time.monotonic() - start) if start is not None else 0.0
        data: dict[str, Any] = {
            "total_results": total_results,
            "source_breakdown": source_breakdown,
            "success": success,
            "duration_seconds": round(elapsed, 3),
        }
        if error_reason:
            data["error_reason"] = error_reason[:500]
        self.log_event(
            LogEvent(
                event_type="AGGREGATION_DONE", timestamp=self._timestamp(), data=data
            )
        )
        dur = f"{_c('duration')}{_format_duration(elapsed)}{_reset()}"
        if success:
            status_str = f"{_c('done_ok')}[ok]{_reset()}"
        else:
            status_str = f"{_c('done_fail')}[failed]{_reset()} {_short_reason(error_reason)}"
        self.console.info(
            f"{self._prefix()}{_c('done_ok')}✓ Done{_reset()}  {total_results} results  "
            f"total {dur}  {status_str}"
        )
        _log_run_id.set(None)
        _log_run_start.set(None)
        self.console.info(_RUN_SEP)

    def external_call(self, provider: str, model: str, full_payload: dict):
        timestamp = self._timestamp()
        event = LogEvent(
            event_type="EXTERNAL_CALL",
            timestamp=timestamp,
            data={
                "provider": provider,
                "model": model,
                "payload_size": len(json.dumps(full_payload, default=str)),
            },
        )
        self.log_event(event)
        safe_timestamp = timestamp.replace(":", "-")
        payload_file = self.external_dir / f"{safe_timestamp}_{provider}.json"
        with open(payload_file, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "timestamp": timestamp,
                    "provider": provider,
                    "model": model,
                    "payload": full_payload,
                },
                f,
                indent=2,
                default=str,
            )
        self.console.info(
            f"{self._prefix()}☁️ EXTERNAL: {provider}/{_c('model')}{model}{_reset()} → logged to {payload_file.name}"
        )

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        event = LogEvent(
            event_type="ERROR",
            timestamp=self._timestamp(),
            data={
                "message": message,
                "exception": str(exception) if exception else None,
            },
        )
        self.log_event(event)

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception

        self.console.error(f"❌ Error: {message}", *args, **log_kwargs)

    def info(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.info(f"{self._prefix()}{message}", *args, **log_kwargs)

    def warning(self, message: str, *args, **kwargs):
        event = LogEvent(
            event_type="WARNING",
            timestamp=self._timestamp(),
            data={"message": message[:500]},
        )
        self.log_event(event)

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.warning(f"⚠️ {message}", *args, **log_kwargs)

    def exception(self, message: str, *args, **kwargs):
        event = LogEvent(
            event_type="ERROR",
            timestamp=self._timestamp(),
            data={"message": message[:500]},
        )
        self.log_event(event)
        self.console.exception(f"❌ {message}", *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        event = LogEvent(
            event_type="DEBUG", timestamp=self._timestamp(), data={"message": message}
        )
        self.log_event(event)

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.debug(message, *args, **log_kwargs)


logger = ResearchLogger()
