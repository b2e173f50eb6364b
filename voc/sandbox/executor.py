"""
Sandbox executor.

Evaluates ordered fragments against one shared interpreter scope: functions
and ``var`` bindings declared by an earlier fragment are visible to every
later one, as on the platform. The timeout budget covers the whole run.
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import quickjs

from ..config import settings
from ..errors import EvaluationFailure
from ..project import Fragment
from .runtime import RuntimeContext

logger = logging.getLogger("voc.executor")

# QuickJS names evaluated sources "<input>" in stack traces.
_FRAME_LINE = re.compile(r"<input>:(\d+)")

# Sources start on line 2 so QuickJS always emits a line table for them.
_SOURCE_PREFIX = "\n"
_LINE_OFFSET = 1


@dataclass(frozen=True)
class ExecutionReport:
    elapsed_ms: float
    fragments_loaded: int
    http_call_count: int
    storage_op_count: int
    session_variables: Dict[str, Any] = field(default_factory=dict)
    http_call_log: List[Dict[str, Any]] = field(default_factory=list)
    log_lines: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elapsedMs": self.elapsed_ms,
            "fragmentsLoaded": self.fragments_loaded,
            "httpCallCount": self.http_call_count,
            "storageOpCount": self.storage_op_count,
            "sessionVariablesSnapshot": self.session_variables,
            "httpCallLog": self.http_call_log,
            "logLines": self.log_lines,
        }


def _error_line(message: str, source: str = "") -> Optional[int]:
    """Line of the outermost frame, i.e. the fragment being evaluated.

    QuickJS omits the line when the failing operation sits in a unit with no
    line table; a fragment with a single statement line is then unambiguous.
    """
    matches = _FRAME_LINE.findall(message)
    if matches:
        return max(int(matches[-1]) - _LINE_OFFSET, 1)
    code_lines = [n for n, text in enumerate(source.split("\n"), 1) if text.strip()]
    if len(code_lines) == 1:
        return code_lines[0]
    return None


def _summary(message: str) -> str:
    return message.strip().splitlines()[0] if message.strip() else "unknown error"


def _evaluate(context: RuntimeContext, fragment: Fragment, remaining_s: float) -> None:
    """Evaluate one fragment and settle its promise callbacks.

    QuickJS measures the limit in process CPU time, which every thread of the
    process advances; ``run`` enforces the wall-clock deadline itself.
    """
    js = context.js
    js.set_time_limit(remaining_s)
    try:
        js.eval(_SOURCE_PREFIX + fragment.text)
        # Settle promise callbacks before the next fragment; nothing may stay pending.
        while js.execute_pending_job():
            pass
    finally:
        js.set_time_limit(-1)


def _check_host_state(context: RuntimeContext, fragment: Fragment) -> None:
    context.collect()
    if context.host_error is not None:
        raise context.host_error
    if context.async_error is not None:
        error = context.async_error
        raise EvaluationFailure(
            fragment.name,
            _summary(error["message"]),
            line=_error_line(error["stack"], fragment.text),
        )


def run(
    context: RuntimeContext,
    fragments: Sequence[Fragment],
    timeout_ms: Optional[int] = None,
) -> ExecutionReport:
    """Evaluate ``fragments`` in order inside ``context``.

    Raises EvaluationFailure for the first fragment that throws, whose
    promise callback throws, or that runs out of budget. Reserved-mode
    failures (UnsupportedModeFailure) propagate as themselves even when the
    script caught them. No later fragment is evaluated after a failure.
    """
    budget_ms = timeout_ms if timeout_ms is not None else settings.SANDBOX_TIMEOUT_MS
    if budget_ms <= 0:
        raise ValueError(f"timeout_ms must be positive, got {budget_ms}")

    start = time.perf_counter()
    deadline = start + budget_ms / 1000.0

    for fragment in fragments:
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            raise EvaluationFailure(
                fragment.name,
                f"execution budget of {budget_ms}ms exhausted",
                timed_out=True,
            )

        context.current_fragment = fragment.name
        try:
            _evaluate(context, fragment, remaining)
        except quickjs.JSException as e:
            context.collect()
            if context.host_error is not None:
                raise context.host_error from e
            message = str(e)
            timed_out = "interrupted" in message or time.perf_counter() >= deadline
            raise EvaluationFailure(
                fragment.name,
                _summary(message),
                line=_error_line(message, fragment.text),
                timed_out=timed_out,
            ) from e

        _check_host_state(context, fragment)

        if time.perf_counter() > deadline:
            raise EvaluationFailure(
                fragment.name,
                f"execution budget of {budget_ms}ms exceeded",
                timed_out=True,
            )

        context.fragments_loaded += 1
        context.debug(f"Loaded: {fragment.name}")

    context.current_fragment = None
    try:
        snapshot = context.session_variables()
    except quickjs.JSException as e:
        raise EvaluationFailure("<session snapshot>", _summary(str(e))) from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(f"Evaluated {context.fragments_loaded} fragments in {elapsed_ms:.1f}ms")
    return ExecutionReport(
        elapsed_ms=elapsed_ms,
        fragments_loaded=context.fragments_loaded,
        http_call_count=context.http_call_count,
        storage_op_count=context.storage_op_count,
        session_variables=snapshot,
        http_call_log=[dict(call) for call in context.http_calls],
        log_lines=list(context.log_lines),
    )
