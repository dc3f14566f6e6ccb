"""Isolation dispatcher: runs steppers in a worker process pool.

Each request carries a monotonically increasing id; completed responses are
routed back to the awaiting coroutine through a pending map keyed by that
id.  When the pool cannot be created or breaks, the dispatcher logs it and
runs every later request synchronously on the caller's thread.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass, field
from typing import Callable

from . import constants
from .errors import ExecutionFailed, LemmaError, WorkerUnavailable
from .js_stepper import run_javascript
from .normalize import finalize_steps
from .simulators import simulate_lines
from .trace_types import LineStep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerRequest:
    request_id: int
    kind: str
    code: str
    language: str
    time_limit: float = 0.0
    memory_limit: int = 0


@dataclass(frozen=True)
class WorkerResponse:
    request_id: int
    steps: list[LineStep] = field(default_factory=list)
    error: str | None = None


def handle_request(request: WorkerRequest) -> WorkerResponse:
    """Worker entry point. Domain failures travel back in ``error``."""
    try:
        if request.kind == constants.WORKER_KIND_DYNAMIC:
            steps = run_javascript(
                request.code,
                time_limit=request.time_limit,
                memory_limit=request.memory_limit,
            )
        elif request.kind == constants.WORKER_KIND_HEURISTIC:
            steps = finalize_steps(simulate_lines(request.code, request.language))
        else:
            raise ValueError(f"Unknown worker request kind: {request.kind}")
    except LemmaError as exc:
        return WorkerResponse(request_id=request.request_id, error=str(exc))
    return WorkerResponse(request_id=request.request_id, steps=steps)


def _default_executor(max_workers: int) -> Executor:
    return ProcessPoolExecutor(max_workers=max_workers)


class IsolationDispatcher:
    """Routes VM and line-simulation work to a process pool when possible."""

    def __init__(
        self,
        use_workers: bool = True,
        max_workers: int = 1,
        executor_factory: Callable[[int], Executor] = _default_executor,
    ):
        self._use_workers = use_workers
        self._max_workers = max_workers
        self._executor_factory = executor_factory
        self._executor: Executor | None = None
        self._degraded = False
        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future] = {}
        self.last_run_in_worker = False

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _pool(self) -> Executor:
        if self._executor is None:
            try:
                self._executor = self._executor_factory(self._max_workers)
            except Exception as exc:
                raise WorkerUnavailable(f"Could not start worker pool: {exc}") from exc
            logger.info("Started worker pool with %d workers", self._max_workers)
        return self._executor

    def deliver(self, response: WorkerResponse) -> None:
        """Resolve the waiter for ``response.request_id``; unknown ids are dropped."""
        waiter = self._pending.pop(response.request_id, None)
        if waiter is None:
            logger.warning("Dropping response for unknown request %d", response.request_id)
            return
        if not waiter.done():
            waiter.set_result(response)

    def _on_done(self, request_id: int, future: Future) -> None:
        exc = future.exception()
        if exc is None:
            self.deliver(future.result())
            return
        waiter = self._pending.pop(request_id, None)
        if waiter is None or waiter.done():
            return
        if isinstance(exc, BrokenProcessPool):
            failure: BaseException = WorkerUnavailable(f"Worker pool broke: {exc}")
            failure.__cause__ = exc
        else:
            failure = exc
        waiter.set_exception(failure)

    async def _submit(self, request: WorkerRequest) -> WorkerResponse:
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._pending[request.request_id] = waiter
        try:
            future = self._pool().submit(handle_request, request)
        except WorkerUnavailable:
            self._pending.pop(request.request_id, None)
            raise
        except (BrokenProcessPool, RuntimeError, OSError) as exc:
            self._pending.pop(request.request_id, None)
            raise WorkerUnavailable(f"Could not submit to worker pool: {exc}") from exc
        future.add_done_callback(
            lambda f: loop.call_soon_threadsafe(self._on_done, request.request_id, f)
        )
        return await waiter

    def _degrade(self):
        logger.warning("Worker pool unavailable; falling back to synchronous execution", exc_info=True)
        self._degraded = True
        self._shutdown()

    async def _dispatch(self, request: WorkerRequest) -> list[LineStep]:
        response: WorkerResponse | None = None
        self.last_run_in_worker = False
        if self._use_workers and not self._degraded:
            try:
                response = await self._submit(request)
                self.last_run_in_worker = True
            except WorkerUnavailable:
                self._degrade()
        if response is None:
            response = handle_request(request)
        if response.error is not None:
            raise ExecutionFailed(response.error)
        logger.debug(
            "Request %d (%s) returned %d steps", request.request_id, request.kind, len(response.steps)
        )
        return response.steps

    async def run_dynamic(
        self, code: str, time_limit: float = 0.0, memory_limit: int = 0
    ) -> list[LineStep]:
        request = WorkerRequest(
            request_id=next(self._ids),
            kind=constants.WORKER_KIND_DYNAMIC,
            code=code,
            language=constants.Language.JAVASCRIPT.value,
            time_limit=time_limit,
            memory_limit=memory_limit,
        )
        return await self._dispatch(request)

    async def run_heuristic(self, code: str, language: str) -> list[LineStep]:
        request = WorkerRequest(
            request_id=next(self._ids),
            kind=constants.WORKER_KIND_HEURISTIC,
            code=code,
            language=language,
        )
        return await self._dispatch(request)

    def _shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def close(self) -> None:
        self._shutdown()
