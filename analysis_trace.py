"""
Request-scoped tracing for location analyses.

A thread-local TraceContext records, for one analyze_location() call:
  - per-stage timing (intelligence, places, distances, scoring, ...)
  - per-provider call timing and status (google_maps, gemini)
  - every fallback taken when a provider failed or answered badly

Usage:
    from analysis_trace import TraceContext, get_trace, set_trace, clear_trace

    ctx = TraceContext(trace_id=uuid.uuid4().hex[:12])
    set_trace(ctx)
    ...
    ctx.log_summary()
    clear_trace()

HTTP collaborators record their calls automatically when a trace is set.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Records
# =============================================================================

@dataclass
class ProviderCall:
    service: str          # "google_maps" | "gemini"
    endpoint: str         # "text_search", "distance_matrix", "generate_content", ...
    elapsed_ms: int
    status_code: int
    provider_status: str = ""
    stage: str = ""


@dataclass
class StageTiming:
    stage_name: str
    elapsed_ms: int = 0
    calls_made: int = 0
    error_class: str = ""
    error_message: str = ""


@dataclass
class FallbackRecord:
    stage: str
    fallback: str         # "estimated_distances", "fallback_intelligence", ...
    reason: str = ""


# =============================================================================
# Trace context
# =============================================================================

@dataclass
class TraceContext:
    """Accumulates timing and degradation data for one analysis."""
    trace_id: str
    request_start: float = field(default_factory=time.time)
    stages: List[StageTiming] = field(default_factory=list)
    calls: List[ProviderCall] = field(default_factory=list)
    fallbacks: List[FallbackRecord] = field(default_factory=list)
    model_version: str = ""
    _current_stage: str = ""

    def start_stage(self, name: str):
        self._current_stage = name

    def end_stage(self):
        self._current_stage = ""

    @property
    def current_stage(self) -> str:
        return self._current_stage

    def record_stage(
        self,
        stage_name: str,
        start_ts: float,
        end_ts: float,
        error_class: str = "",
        error_message: str = "",
    ):
        calls_in_stage = sum(1 for c in self.calls if c.stage == stage_name)
        rec = StageTiming(
            stage_name=stage_name,
            elapsed_ms=int((end_ts - start_ts) * 1000),
            calls_made=calls_in_stage,
            error_class=error_class,
            error_message=error_message,
        )
        self.stages.append(rec)
        err_info = f" err={error_class}: {error_message}" if error_class else ""
        logger.info(
            "  [stage] trace=%s %s %s %dms calls=%d%s",
            self.trace_id,
            stage_name,
            "ERR" if error_class else "OK",
            rec.elapsed_ms,
            calls_in_stage,
            err_info,
        )

    def record_api_call(
        self,
        service: str,
        endpoint: str,
        elapsed_ms: int,
        status_code: int,
        provider_status: str = "",
    ):
        self.calls.append(ProviderCall(
            service=service,
            endpoint=endpoint,
            elapsed_ms=elapsed_ms,
            status_code=status_code,
            provider_status=provider_status,
            stage=self._current_stage,
        ))
        logger.debug(
            "  [call] trace=%s stage=%s svc=%s ep=%s ms=%d http=%d provider=%s",
            self.trace_id,
            self._current_stage or "-",
            service,
            endpoint,
            elapsed_ms,
            status_code,
            provider_status,
        )

    def record_fallback(self, fallback: str, reason: str = ""):
        self.fallbacks.append(FallbackRecord(
            stage=self._current_stage, fallback=fallback, reason=reason,
        ))
        logger.info(
            "  [fallback] trace=%s stage=%s %s (%s)",
            self.trace_id, self._current_stage or "-", fallback, reason or "no reason",
        )

    def summary_dict(self) -> Dict[str, Any]:
        total_elapsed = int((time.time() - self.request_start) * 1000)
        errored = [s for s in self.stages if s.error_class]
        if errored and len(errored) == len(self.stages):
            outcome = "error"
        elif errored or self.fallbacks:
            outcome = "degraded"
        else:
            outcome = "success"

        result = {
            "trace_id": self.trace_id,
            "total_elapsed_ms": total_elapsed,
            "total_api_calls": len(self.calls),
            "stages": [
                {"stage": s.stage_name, "elapsed_ms": s.elapsed_ms, "calls": s.calls_made}
                for s in self.stages
            ],
            "fallbacks": [
                {"stage": f.stage, "fallback": f.fallback, "reason": f.reason}
                for f in self.fallbacks
            ],
            "final_outcome": outcome,
        }
        if self.model_version:
            result["model_version"] = self.model_version
        return result

    def log_summary(self):
        """Emit a single structured summary log line."""
        s = self.summary_dict()
        logger.info(
            "[trace-summary] trace=%s total_ms=%d api_calls=%d stages=%d fallbacks=%d outcome=%s",
            s["trace_id"],
            s["total_elapsed_ms"],
            s["total_api_calls"],
            len(s["stages"]),
            len(s["fallbacks"]),
            s["final_outcome"],
        )


# =============================================================================
# Thread-local storage
# =============================================================================

_trace_local = threading.local()


def get_trace() -> Optional[TraceContext]:
    return getattr(_trace_local, "ctx", None)


def set_trace(ctx: Optional[TraceContext]):
    _trace_local.ctx = ctx


def clear_trace():
    _trace_local.ctx = None
