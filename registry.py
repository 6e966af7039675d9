"""
Function registry for the voice platform.

Operations are registered once at startup and invoked by name. `invoke`
always returns a Result: unknown names and invalid parameters are answered
with structured results, and any exception raised by an operation is
replaced with the operation's fallback message.

Cacheable operations share one computation between concurrent callers with
the same key; followers await it through `asyncio.shield` so a caller going
away never cancels the computation or its cache write.
"""
import asyncio
import json
import logging
import time
from collections import namedtuple
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, Optional, Type, Union

from pydantic import ValidationError

from errors import DuplicateOperationError, UnknownOperationError
from language import get_localized_text, resolve_language
from models import CallContext, OperationParams, Result

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK = {
    "en": "I'm having trouble with that request right now. Please try again in a moment.",
    "el": "Αντιμετωπίζω πρόβλημα με αυτό το αίτημα αυτή τη στιγμή. Παρακαλώ δοκιμάστε ξανά σε λίγο.",
}

_Outcome = namedtuple("_Outcome", ["result", "error_class"])


@dataclass(frozen=True)
class CallableOperation:
    name: str
    executor: Callable[[Any, CallContext], Awaitable[Result]]
    cache_ttl_seconds: int = 0
    fallback_message: Union[str, Dict[str, str]] = None
    params_model: Optional[Type[OperationParams]] = None
    input_prompt: str = "clarify_request"

    def __post_init__(self):
        if self.cache_ttl_seconds < 0:
            raise ValueError("cache_ttl_seconds must be >= 0")
        if self.fallback_message is None:
            object.__setattr__(self, "fallback_message", DEFAULT_FALLBACK)

    def fallback_for(self, locale):
        if isinstance(self.fallback_message, dict):
            return self.fallback_message.get(locale) or self.fallback_message["en"]
        return self.fallback_message


@dataclass
class CacheEntry:
    value: Result
    expires_at: float


class TTLCache:
    """Result cache keyed by (operation, canonical params, locale)"""

    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self._entries: Dict[tuple, CacheEntry] = {}

    def get(self, key) -> Optional[Result]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key, value, ttl_seconds):
        if ttl_seconds <= 0:
            return
        self._entries[key] = CacheEntry(value=value, expires_at=self.clock() + ttl_seconds)

    def purge_expired(self):
        now = self.clock()
        for key in [key for key, entry in self._entries.items() if now >= entry.expires_at]:
            del self._entries[key]

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


def _normalize_value(value):
    if isinstance(value, dict):
        return {str(key): _normalize_value(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [_normalize_value(item) for item in value]
    if isinstance(value, str):
        return value.strip().lower()
    return value


def canonicalize(params):
    """Stable string form of parameters: lower-cased strings, sorted keys, no nulls"""
    return json.dumps(_normalize_value(params or {}), sort_keys=True, ensure_ascii=False, default=str)


def coerce_parameters(params):
    """Platform parameters as a dict. None when they are not a JSON object"""
    if params is None:
        return {}
    if isinstance(params, (str, bytes)):
        if not params.strip():
            return {}
        try:
            params = json.loads(params)
        except ValueError:
            return None
    if isinstance(params, Mapping):
        return dict(params)
    return None


def _parameter_text(params):
    return " ".join(str(value) for value in (params or {}).values() if isinstance(value, str))


class FunctionRegistry:
    def __init__(self, telemetry=None, clock=time.monotonic):
        self.telemetry = telemetry
        self.cache = TTLCache(clock)
        self._operations: Dict[str, CallableOperation] = {}
        self._inflight: Dict[tuple, asyncio.Future] = {}

    def register(self, operation: CallableOperation):
        if operation.name in self._operations:
            raise DuplicateOperationError(operation.name)
        self._operations[operation.name] = operation
        logger.debug("Registered operation %s (ttl=%ss)", operation.name, operation.cache_ttl_seconds)

    def names(self):
        return list(self._operations)

    def get(self, name):
        return self._operations.get(name)

    def stats(self):
        self.cache.purge_expired()
        return {
            "operations": self.names(),
            "cacheSize": len(self.cache),
            "inFlight": len(self._inflight),
        }

    @staticmethod
    def resolve_locale(params, context):
        explicit = context.explicit_language or (params or {}).get("language")
        return resolve_language(explicit=explicit, text=_parameter_text(params))

    async def invoke(self, name, params=None, context=None) -> Result:
        started = time.perf_counter()
        context = context or CallContext()
        raw_params = coerce_parameters(params)
        params = raw_params if raw_params is not None else {}
        locale = self.resolve_locale(params, context)

        operation = self._operations.get(name)
        if operation is None:
            error = UnknownOperationError(name)
            logger.warning("%s", error)
            result = Result(
                success=False,
                message=get_localized_text("unknown_function", locale, name=name),
                error=error.to_dict(),
            )
            self._track(name, started, context, result, error_class=type(error).__name__)
            return result

        if raw_params is None:
            logger.info("Parameters for %s are not a JSON object", name)
            return self._ask_for_input(operation, locale, started, context, "InvalidParameters")

        try:
            typed = operation.params_model.model_validate(params) if operation.params_model else params
        except ValidationError as e:
            logger.info("Invalid parameters for %s (%d errors)", name, e.error_count())
            return self._ask_for_input(operation, locale, started, context, type(e).__name__)

        context = replace(context, language=locale)
        if operation.cache_ttl_seconds <= 0:
            outcome = await self._execute(operation, typed, context, None)
            self._track(name, started, context, outcome.result, error_class=outcome.error_class, cache="bypass")
            return outcome.result

        dumped = typed.model_dump() if isinstance(typed, OperationParams) else typed
        key = (name, canonicalize(dumped), locale)
        cached = self.cache.get(key)
        if cached is not None:
            self._track(name, started, context, cached, cache="hit")
            return cached

        task = self._inflight.get(key)
        cache_state = "shared"
        if task is None:
            cache_state = "miss"
            task = asyncio.ensure_future(self._execute(operation, typed, context, key))
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))

        outcome = await asyncio.shield(task)
        self._track(name, started, context, outcome.result, error_class=outcome.error_class, cache=cache_state)
        return outcome.result

    def _ask_for_input(self, operation, locale, started, context, error_class):
        result = Result(
            success=True,
            message=get_localized_text(operation.input_prompt, locale),
            requires_input=True,
        )
        self._track(operation.name, started, context, result, error_class=error_class)
        return result

    async def _execute(self, operation, params, context, key) -> _Outcome:
        """Run the operation inside the failure boundary"""
        try:
            result = await operation.executor(params, context)
            if not isinstance(result, Result):
                raise TypeError(f"{operation.name} returned {type(result).__name__}, expected Result")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Operation %s failed: %s", operation.name, e, exc_info=True)
            return _Outcome(Result(success=False, message=operation.fallback_for(context.language)),
                            type(e).__name__)

        if key is not None and result.success:
            self.cache.set(key, result, operation.cache_ttl_seconds)
        return _Outcome(result, None)

    def _forget(self, key, task):
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def _track(self, name, started, context, result, error_class=None, cache=None):
        if self.telemetry is None:
            return
        self.telemetry.track(
            "function_invoked", name,
            latency_ms=(time.perf_counter() - started) * 1000,
            success=result.success,
            error_class=error_class,
            cache=cache,
            conversation_id=context.conversation_id,
        )
