"""
Search coordinator: runs one or more workers and returns the first match.
"""

import logging
import logging.handlers
import multiprocessing
import os
import queue
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from tonvanity.cancel import CancellationToken
from tonvanity.core import (
    Candidate,
    ContractVersion,
    DEFAULT_CONTRACT_VERSION,
    TonCandidateGenerator,
)
from tonvanity.errors import SearchAborted, SearchFailed, ValidationError, WorkerError
from tonvanity.matcher import validate_target_pattern
from tonvanity.worker import SUCCESS, SearchWorker, search_worker

logger = logging.getLogger(__name__)

AUTO_WORKERS = "auto"

# Loggers whose levels worker processes copy from the parent.
FORWARDED_LOGGERS = ("", "tonvanity", "tonvanity.trace")


@dataclass(frozen=True)
class SearchConfig:
    """Validated, immutable parameters of one search."""
    target_pattern: str
    workers: Union[int, str] = 1
    contract_version: ContractVersion = DEFAULT_CONTRACT_VERSION
    verbose_trace: bool = False

    def __post_init__(self):
        validate_target_pattern(self.target_pattern)
        object.__setattr__(
            self, "contract_version", ContractVersion.parse(self.contract_version)
        )
        if self.workers != AUTO_WORKERS and (
            isinstance(self.workers, bool)
            or not isinstance(self.workers, int)
            or self.workers < 1
        ):
            raise ValidationError(
                f"Invalid workers value {self.workers!r}. "
                f'Use a positive integer or "{AUTO_WORKERS}".'
            )

    def resolve_workers(self) -> int:
        if self.workers == AUTO_WORKERS:
            # Honour CPU affinity (taskset, cgroups) where the platform exposes it.
            if hasattr(os, "sched_getaffinity"):
                return max(1, len(os.sched_getaffinity(0)))
            return max(1, os.cpu_count() or 1)
        return self.workers


@dataclass(frozen=True)
class SearchOutcome:
    """The winning wallet, hex-encoded, plus run statistics."""
    public_key: str
    private_key: str
    mnemonic: tuple[str, ...]
    address: str
    contract_version: ContractVersion = DEFAULT_CONTRACT_VERSION
    total_checked: int = 0
    elapsed: float = 0.0

    @classmethod
    def from_candidate(
        cls,
        candidate: Candidate,
        contract_version: ContractVersion = DEFAULT_CONTRACT_VERSION,
        total_checked: int = 0,
        elapsed: float = 0.0,
    ) -> "SearchOutcome":
        return cls(
            public_key=candidate.public_key.hex(),
            private_key=candidate.private_key.hex(),
            mnemonic=tuple(candidate.mnemonic),
            address=candidate.address,
            contract_version=contract_version,
            total_checked=total_checked,
            elapsed=elapsed,
        )

    @property
    def phrase(self) -> str:
        return " ".join(self.mnemonic)

    @property
    def rate(self) -> float:
        return self.total_checked / self.elapsed if self.elapsed > 0 else 0.0


@dataclass
class SearchStats:
    """Live stats during a search."""
    total_checked: int = 0
    elapsed: float = 0.0
    rate: float = 0.0
    workers: int = 0


class SearchCoordinator:
    """Races search workers and returns exactly one match.

    Usage:
        coordinator = SearchCoordinator()
        coordinator.on_progress = lambda stats: print(f"{stats.rate:.0f} wallets/sec")
        outcome = coordinator.run(SearchConfig("ton", workers="auto"))

    With a single worker the loop runs in the calling thread. With more, each
    worker is a separate process; the coordinator is the only owner of their
    lifecycle and every process is joined or terminated before run() exits.
    """

    def __init__(
        self,
        generator_factory: Callable = TonCandidateGenerator,
        mp_context=None,
        poll_interval: float = 0.1,
        join_timeout: float = 1.0,
    ):
        if mp_context is None or isinstance(mp_context, str):
            mp_context = multiprocessing.get_context(mp_context)
        self.generator_factory = generator_factory
        self.mp_context = mp_context
        self.poll_interval = poll_interval
        self.join_timeout = join_timeout

        self.on_progress: Optional[Callable[[SearchStats], None]] = None

    def run(
        self,
        config: SearchConfig,
        cancellation: Optional[CancellationToken] = None,
    ) -> SearchOutcome:
        """Search until a match is found.

        Raises:
            SearchAborted: the token fired before any worker succeeded.
            SearchFailed: workers could not be started, or all of them failed.
        """
        token = cancellation if cancellation is not None else CancellationToken()
        if token.is_cancelled:
            raise SearchAborted(token.reason)

        num_workers = config.resolve_workers()
        logger.info(
            "Searching for %s wallet ending with '%s' using %d worker(s)",
            config.contract_version.value, config.target_pattern, num_workers,
        )

        start = time.time()
        if num_workers == 1:
            candidate, total = self._run_inline(config, token, start)
        else:
            candidate, total = self._run_parallel(config, token, num_workers, start)

        outcome = SearchOutcome.from_candidate(
            candidate,
            contract_version=config.contract_version,
            total_checked=total,
            elapsed=time.time() - start,
        )
        logger.info(
            "Found %s after %d attempts in %.1fs",
            outcome.address, outcome.total_checked, outcome.elapsed,
        )
        return outcome

    # ── Single worker ────────────────────────────────────────────────

    def _run_inline(self, config: SearchConfig, token: CancellationToken, start: float):
        try:
            generator = self.generator_factory(config.contract_version)
        except Exception as e:
            raise SearchFailed(e) from e

        last_report = start

        def on_attempt(worker: SearchWorker):
            nonlocal last_report
            if self.on_progress is None:
                return
            now = time.time()
            if now - last_report >= self.poll_interval:
                last_report = now
                self._report(worker.attempts, start, 1)

        worker = SearchWorker(
            config.target_pattern,
            generator,
            lambda: token.is_cancelled,
            verbose_trace=config.verbose_trace,
            on_attempt=on_attempt,
            name="tonvanity-worker-0",
        )
        try:
            candidate = worker.run()
        except Exception as e:
            logger.error("Worker failed: %r", e)
            raise SearchFailed(e) from e

        if candidate is None:
            raise SearchAborted(token.reason)
        return candidate, worker.attempts

    # ── Worker processes ─────────────────────────────────────────────

    def _run_parallel(
        self,
        config: SearchConfig,
        token: CancellationToken,
        num_workers: int,
        start: float,
    ):
        ctx = self.mp_context
        try:
            result_queue = ctx.Queue()
            log_queue = ctx.Queue()
            stop_event = ctx.Event()
            counter = ctx.Value("Q", 0)
        except Exception as e:
            raise SearchFailed(e) from e

        def on_cancel(_reason):
            stop_event.set()

        log_levels = {
            name: logging.getLogger(name or None).getEffectiveLevel()
            for name in FORWARDED_LOGGERS
        }
        listener = logging.handlers.QueueListener(log_queue, _LogDispatcher())
        listening = False

        workers = []
        token.add_callback(on_cancel)
        try:
            try:
                for i in range(num_workers):
                    p = ctx.Process(
                        target=search_worker,
                        args=(
                            i,
                            config,
                            self.generator_factory,
                            result_queue,
                            stop_event,
                            counter,
                        ),
                        kwargs={"log_queue": log_queue, "log_levels": log_levels},
                        daemon=True,
                        name=f"tonvanity-worker-{i}",
                    )
                    p.start()
                    workers.append(p)
            except Exception as e:
                logger.error("Could not start worker %d: %r", len(workers), e)
                raise SearchFailed(e) from e

            # Started only after the forks so no thread is running while they happen.
            listener.start()
            listening = True

            worker_id, candidate = self._await_winner(
                workers, result_queue, counter, token, start
            )
            logger.debug("Worker %d won the race", worker_id)
        finally:
            token.remove_callback(on_cancel)
            stop_event.set()
            self._teardown(workers)
            if listening:
                listener.stop()
            result_queue.close()
            log_queue.close()

        return candidate, counter.value

    def _await_winner(self, workers, result_queue, counter, token, start):
        failures: dict[int, WorkerError] = {}

        def handle(message):
            kind, worker_id, payload = message
            if kind == SUCCESS:
                return worker_id, payload
            logger.warning("Worker %d failed: %s", worker_id, payload)
            failures.setdefault(worker_id, WorkerError(payload))
            return None

        def check_all_failed():
            if len(failures) >= len(workers):
                raise SearchFailed(next(iter(failures.values())))

        while True:
            if token.is_cancelled:
                raise SearchAborted(token.reason)

            try:
                message = result_queue.get(timeout=self.poll_interval)
            except queue.Empty:
                message = None

            if message is not None:
                winner = handle(message)
                if winner is not None:
                    return winner
                check_all_failed()
                continue

            for i, p in enumerate(workers):
                if p.exitcode not in (None, 0) and i not in failures:
                    logger.warning("%s exited with code %s", p.name, p.exitcode)
                    failures[i] = WorkerError(f"{p.name} exited with code {p.exitcode}")
            check_all_failed()

            if not any(p.is_alive() for p in workers):
                # Last chance for a message a worker posted right before exiting.
                try:
                    message = result_queue.get(timeout=self.poll_interval)
                except queue.Empty:
                    if token.is_cancelled:
                        raise SearchAborted(token.reason)
                    raise SearchFailed(WorkerError("all workers exited without a result"))
                winner = handle(message)
                if winner is not None:
                    return winner
                check_all_failed()
                continue

            if self.on_progress is not None:
                self._report(counter.value, start, len(workers))

    def _teardown(self, workers) -> None:
        deadline = time.time() + self.join_timeout
        for p in workers:
            p.join(timeout=max(0.0, deadline - time.time()))
        for p in workers:
            if p.is_alive():
                logger.debug("Terminating %s", p.name)
                p.terminate()
                p.join()

    def _report(self, total: int, start: float, num_workers: int) -> None:
        elapsed = time.time() - start
        self.on_progress(SearchStats(
            total_checked=total,
            elapsed=elapsed,
            rate=total / elapsed if elapsed > 0 else 0.0,
            workers=num_workers,
        ))



class _LogDispatcher(logging.Handler):
    """Hands records drained from worker processes to this process's loggers."""

    def emit(self, record):
        name = None if record.name == "root" else record.name
        logging.getLogger(name).handle(record)


def find_wallet(
    config: SearchConfig,
    cancellation: Optional[CancellationToken] = None,
    sink=None,
    coordinator: Optional[SearchCoordinator] = None,
) -> SearchOutcome:
    """Run a search and hand the outcome to ``sink`` (a ResultSink), if any."""
    coordinator = coordinator or SearchCoordinator()
    outcome = coordinator.run(config, cancellation)
    if sink is not None:
        sink.consume(outcome)
    return outcome
