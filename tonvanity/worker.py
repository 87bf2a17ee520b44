"""
Search worker: the sequential generate-and-check loop.

SearchWorker is driven either in the caller's thread (single worker) or
inside a child process through search_worker().

IMPORTANT: search_worker must stay a top-level importable function so the
'spawn' and 'forkserver' start methods can locate it by name.
"""

import logging
import logging.handlers
import signal
from enum import Enum
from typing import Callable, Optional

from tonvanity.core import Candidate
from tonvanity.errors import GenerationError
from tonvanity.matcher import matches

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("tonvanity.trace")

SUCCESS = "success"
FAILED = "failed"


class WorkerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SearchWorker:
    """One search loop over a candidate generator.

    Cancellation is polled once per iteration; a generator call already in
    progress is allowed to finish first.
    """

    def __init__(
        self,
        pattern: str,
        generator: Callable[[], Candidate],
        is_cancelled: Callable[[], bool],
        verbose_trace: bool = False,
        on_attempt: Optional[Callable[["SearchWorker"], None]] = None,
        name: str = "worker",
    ):
        self.pattern = pattern
        self.generator = generator
        self.is_cancelled = is_cancelled
        self.verbose_trace = verbose_trace
        self.on_attempt = on_attempt
        self.name = name

        self.state = WorkerState.IDLE
        self.result: Optional[Candidate] = None
        self.attempts = 0
        self.failures = 0

    def run(self) -> Optional[Candidate]:
        """Loop until a match (returns it) or cancellation (returns None).

        GenerationError is retried. Any other exception moves the worker to
        FAILED and propagates.
        """
        if self.state is not WorkerState.IDLE:
            raise RuntimeError(f"{self.name} has already run")
        self.state = WorkerState.RUNNING

        try:
            while True:
                if self.is_cancelled():
                    self.state = WorkerState.CANCELLED
                    logger.debug("%s cancelled after %d attempts", self.name, self.attempts)
                    return None

                try:
                    candidate = self.generator()
                except GenerationError as e:
                    self.failures += 1
                    logger.warning("%s: %s, retrying", self.name, e)
                    continue

                self.attempts += 1
                if self.verbose_trace:
                    trace_logger.info("Trying address: %s", candidate.address)
                if self.on_attempt is not None:
                    self.on_attempt(self)

                if matches(candidate.address, self.pattern):
                    self.result = candidate
                    self.state = WorkerState.SUCCEEDED
                    logger.debug("%s found %s", self.name, candidate.address)
                    return candidate
        except BaseException:
            if self.state is WorkerState.RUNNING:
                self.state = WorkerState.FAILED
            raise


def forward_logging(log_queue, log_levels: dict[str, int]) -> None:
    """Route every record of this process to the parent through ``log_queue``.

    Spawned children start with unconfigured logging and forked ones carry
    copies of the parent handlers, so both are replaced by one QueueHandler.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(logging.handlers.QueueHandler(log_queue))
    for name, level in log_levels.items():
        logging.getLogger(name or None).setLevel(level)


def search_worker(
    worker_id: int,
    config,
    generator_factory,
    result_queue,
    stop_event,
    counter,
    batch_size: int = 16,
    log_queue=None,
    log_levels: Optional[dict[str, int]] = None,
):
    """Worker process: run one SearchWorker until a match or stop_event is set.

    Args:
        worker_id: Index of this worker, echoed back in every message.
        config: SearchConfig (read only).
        generator_factory: Callable taking a ContractVersion and returning a
            candidate generator private to this process.
        result_queue: multiprocessing.Queue receiving (SUCCESS, id, Candidate)
            or (FAILED, id, message).
        stop_event: multiprocessing.Event, set by the coordinator or by the
            first worker to find a match.
        counter: multiprocessing.Value('Q') of total candidates checked.
        batch_size: Attempts accumulated locally between counter updates.
        log_queue: multiprocessing.Queue the parent drains into its own
            handlers. None leaves logging as the process found it.
        log_levels: Logger name -> level, copied from the parent.
    """
    # The coordinator owns Ctrl-C handling and tears workers down itself.
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    if log_queue is not None:
        forward_logging(log_queue, log_levels or {})

    pending = 0

    def flush():
        nonlocal pending
        if pending:
            with counter.get_lock():
                counter.value += pending
            pending = 0

    def on_attempt(_worker):
        nonlocal pending
        pending += 1
        if pending >= batch_size:
            flush()

    try:
        worker = SearchWorker(
            config.target_pattern,
            generator_factory(config.contract_version),
            stop_event.is_set,
            verbose_trace=config.verbose_trace,
            on_attempt=on_attempt,
            name=f"tonvanity-worker-{worker_id}",
        )
        candidate = worker.run()
    except Exception as e:
        flush()
        logger.error("Worker %d failed: %r", worker_id, e)
        result_queue.put((FAILED, worker_id, f"{type(e).__name__}: {e}"))
        return

    flush()
    if candidate is not None:
        result_queue.put((SUCCESS, worker_id, candidate))
        stop_event.set()
