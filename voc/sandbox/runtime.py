"""
Vocalls platform runtime mock.

Builds an isolated QuickJS interpreter context exposing the globals the
Vocalls runtime provides (``context``, logging, HTTP, Storage) and nothing
the platform lacks: console, timers, module loading, process introspection
and post-ES5 reflection built-ins are bound to ``undefined`` so scripts that
rely on them fail in simulation exactly as they would in production.

The whole platform API lives inside the interpreter. The QuickJS binding
refuses to call into Python while a time limit is installed, so logs, the
HTTP call log, storage and counters are buffered JS-side in ``__voc_host``
and pulled into Python by ``RuntimeContext.collect`` between evaluations.
"""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import quickjs

from ..config import settings
from ..errors import UnsupportedModeFailure

logger = logging.getLogger("voc.runtime")

HTTP_MODES = ("stub", "real")
STORAGE_MODES = ("memory", "disk")

LogSink = Callable[[str, str], None]

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Host capabilities the platform does not offer.
SUPPRESSED_GLOBALS = [
    "console",
    "setTimeout",
    "setInterval",
    "clearTimeout",
    "clearInterval",
    "setImmediate",
    "require",
    "module",
    "exports",
    "process",
    "global",
    "__dirname",
    "__filename",
]

# Built-ins newer than the platform's ES5.1 engine (Map/Set/WeakMap/WeakSet stay).
NON_ES5_GLOBALS = [
    "Proxy",
    "Reflect",
    "Symbol",
    "BigInt",
    "BigInt64Array",
    "BigUint64Array",
    "SharedArrayBuffer",
    "Atomics",
    "WeakRef",
    "FinalizationRegistry",
    "AggregateError",
]

PRELUDE = """
(function (root, options) {
    var state = {
        logs: [],
        httpCalls: [],
        httpCount: 0,
        storageOps: 0,
        hostError: null,
        asyncError: null
    };
    var storage = {};
    var hasOwn = Object.prototype.hasOwnProperty;

    function now() { return new Date().toISOString(); }

    function format(args) {
        var parts = [];
        for (var i = 0; i < args.length; i++) {
            var a = args[i];
            parts.push(typeof a === 'object' && a !== null ? JSON.stringify(a) : String(a));
        }
        return parts.join(' ');
    }

    function emit(level, message) {
        state.logs.push([level, '[' + now() + '] [' + level + '] ' + message]);
    }

    function debug(message) {
        if (options.verbose) { emit('DEBUG', message); }
    }

    function copy(value) {
        var text = JSON.stringify(value);
        return text === undefined ? null : JSON.parse(text);
    }

    function describe(error) {
        return {
            message: String(error),
            stack: error !== null && typeof error === 'object' && error.stack ? String(error.stack) : ''
        };
    }

    function unsupported(mode, feature) {
        if (state.hostError === null) {
            state.hostError = {mode: mode, feature: feature};
        }
        throw new Error(feature + " mode '" + mode + "' is not implemented");
    }

    root.logInfo = function () { emit('INFO', format(arguments)); };
    root.logWarn = function () { emit('WARN', format(arguments)); };
    root.logError = function () { emit('ERROR', format(arguments)); };
    root.log_debug = function () { emit('DEBUG', format(arguments)); };

    function request(config) {
        var cfg = config !== null && typeof config === 'object' ? config : {};
        var method = cfg.method || 'GET';
        state.httpCount++;
        debug('HTTP ' + method + ': ' + cfg.url);
        state.httpCalls.push({
            timestamp: now(),
            method: method,
            url: copy(cfg.url),
            headers: copy(cfg.headers),
            body: copy(cfg.body)
        });
        if (options.httpMode !== 'stub') { unsupported(options.httpMode, 'HTTP'); }
        return Promise.resolve({
            success: true,
            status: 200,
            data: {message: 'Stubbed response for ' + cfg.url, timestamp: now(), method: method},
            headers: {'content-type': 'application/json'}
        });
    }
    root.jsonHttpRequest = request;
    root.httpRequest = request;

    root.Storage = {
        readFile: function (path) {
            state.storageOps++;
            if (options.storageMode !== 'memory') { unsupported(options.storageMode, 'Storage'); }
            var key = String(path);
            if (!hasOwn.call(storage, key)) {
                return {success: false, text: null, error: 'file_not_found'};
            }
            return {success: true, text: storage[key], error: null};
        },
        writeFile: function (path, content) {
            state.storageOps++;
            if (options.storageMode !== 'memory') { unsupported(options.storageMode, 'Storage'); }
            storage[String(path)] = content === undefined || content === null ? '' : String(content);
            return {success: true, error: null};
        }
    };

    root.nowUTC = now;

    var NativePromise = root.Promise;
    var nativeThen = NativePromise.prototype.then;

    // A throw inside a callback only rejects the derived promise; record it.
    function guard(callback) {
        if (typeof callback !== 'function') { return callback; }
        return function (value) {
            try {
                return callback.call(this, value);
            } catch (e) {
                if (state.asyncError === null) { state.asyncError = describe(e); }
                throw e;
            }
        };
    }
    NativePromise.prototype.then = function (onFulfilled, onRejected) {
        return nativeThen.call(this, guard(onFulfilled), guard(onRejected));
    };
    NativePromise.prototype['catch'] = function () {
        throw new Error('.catch() not supported in Vocalls ES5.1. Use .then(success, error)');
    };
    NativePromise.all = function () {
        throw new Error('Promise.all() not supported in Vocalls ES5.1');
    };
    NativePromise.race = function () {
        throw new Error('Promise.race() not supported in Vocalls ES5.1');
    };

    Object.defineProperty(root, '__voc_host', {
        enumerable: false,
        configurable: false,
        writable: false,
        value: {
            drain: function () {
                var out = {
                    logs: state.logs,
                    httpCalls: state.httpCalls,
                    httpCount: state.httpCount,
                    storageOps: state.storageOps,
                    hostError: state.hostError,
                    asyncError: state.asyncError
                };
                state.logs = [];
                state.httpCalls = [];
                state.hostError = null;
                state.asyncError = null;
                return JSON.stringify(out);
            }
        }
    });

    var hidden = options.hidden;
    for (var i = 0; i < hidden.length; i++) {
        root[hidden[i]] = undefined;
    }
})(globalThis, %(options)s);
"""


def iso_now() -> str:
    """UTC timestamp in the same shape as JS ``Date.prototype.toISOString``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _default_sink(level: str, line: str) -> None:
    logger.log(_LEVELS.get(level, logging.INFO), line)


class RuntimeContext:
    """One simulated Vocalls runtime, owned by a single session."""

    def __init__(
        self,
        environment: str,
        http_mode: str = "stub",
        storage_mode: str = "memory",
        log_sink: Optional[LogSink] = None,
        verbose: bool = False,
        memory_limit_mb: Optional[int] = None,
    ):
        if http_mode not in HTTP_MODES:
            raise ValueError(f"Unknown HTTP mode: {http_mode}")
        if storage_mode not in STORAGE_MODES:
            raise ValueError(f"Unknown storage mode: {storage_mode}")

        self.environment = environment
        self.http_mode = http_mode
        self.storage_mode = storage_mode
        self.verbose = verbose
        self._sink = log_sink or _default_sink

        self.http_calls: List[Dict[str, Any]] = []
        self.log_lines: List[str] = []
        self.http_call_count = 0
        self.storage_op_count = 0
        self.fragments_loaded = 0

        self.current_fragment: Optional[str] = None
        self.host_error: Optional[UnsupportedModeFailure] = None
        self.async_error: Optional[Dict[str, str]] = None

        self.js = quickjs.Context()
        limit = memory_limit_mb if memory_limit_mb is not None else settings.SANDBOX_MEMORY_LIMIT_MB
        if limit and limit > 0:
            self.js.set_memory_limit(limit * 1024 * 1024)
        self._install()

    # --- Setup ---

    def _install(self) -> None:
        options = {
            "httpMode": self.http_mode,
            "storageMode": self.storage_mode,
            "verbose": self.verbose,
            "hidden": SUPPRESSED_GLOBALS + NON_ES5_GLOBALS,
        }
        self.js.eval(PRELUDE % {"options": json.dumps(options)})
        self.js.eval(f"var context = {json.dumps(self._session_object())};")

    def _session_object(self) -> Dict[str, Any]:
        return {
            "settings": {
                "moduleName": f"sim-{self.environment}",
                "lineIdentificator": "SIM_TEST_LINE",
            },
            "language": "nl-NL",
            "callInfo": {
                "callId": f"CALL_{int(time.time() * 1000)}",
                "startTime": iso_now(),
                "direction": "inbound",
            },
            "session": {
                "variables": {
                    "VOCALLS_ENV": self.environment,
                    "SIMULATION_MODE": self.http_mode,
                },
            },
        }

    # --- Host state ---

    def _emit(self, level: str, line: str) -> None:
        self.log_lines.append(line)
        self._sink(level, line)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit("DEBUG", f"[{iso_now()}] [DEBUG] {message}")

    def collect(self) -> None:
        """Pull buffered logs, HTTP calls, counters and failures out of the interpreter.

        Must run with no time limit installed. A reserved-mode failure is
        kept in ``host_error`` even when the script caught the JS error.
        """
        state = json.loads(self.js.eval("__voc_host.drain()"))

        for level, line in state["logs"]:
            self._emit(level, line)
        self.http_calls.extend(state["httpCalls"])
        self.http_call_count = state["httpCount"]
        self.storage_op_count = state["storageOps"]

        failure = state["hostError"]
        if failure is not None and self.host_error is None:
            self.host_error = UnsupportedModeFailure(
                failure["mode"], failure["feature"], fragment=self.current_fragment
            )
        if state["asyncError"] is not None and self.async_error is None:
            self.async_error = state["asyncError"]

    # --- Inspection ---

    def session_variables(self) -> Dict[str, Any]:
        """JSON snapshot of ``context.session.variables``."""
        raw = self.js.eval("JSON.stringify(context.session.variables)")
        return json.loads(raw) if raw else {}


def create_context(
    environment: Optional[str] = None,
    http_mode: Optional[str] = None,
    storage_mode: Optional[str] = None,
    log_sink: Optional[LogSink] = None,
    verbose: bool = False,
) -> RuntimeContext:
    """Factory for a fresh runtime; unset arguments fall back to settings."""
    return RuntimeContext(
        environment=environment or settings.DEFAULT_ENVIRONMENT,
        http_mode=http_mode or settings.DEFAULT_HTTP_MODE,
        storage_mode=storage_mode or settings.DEFAULT_STORAGE_MODE,
        log_sink=log_sink,
        verbose=verbose,
    )
