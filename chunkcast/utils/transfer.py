# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Object Transfer Utils."""

# pylint: disable=too-many-arguments

from __future__ import annotations

import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from threading import Condition, Lock
from typing import (
    TYPE_CHECKING,
    BinaryIO,
    Callable,
    Deque,
    FrozenSet,
    Generic,
    Iterator,
    List,
    Optional,
    Set,
    TypeVar,
)

from tqdm import tqdm
from typing_extensions import Protocol

from chunkcast.errors import (
    ChunkcastInternalError,
    DispatchQueueClosedError,
    InvalidConfigError,
    MaxRetriesExceededError,
    TransientError,
)
from chunkcast.logging import logger
from chunkcast.schema.config import RetryPolicy

if TYPE_CHECKING:
    from chunkcast.client.upload import UploadClient
    from chunkcast.schema.resource.v1.transfer import UploadSession

KiB = 1024
MiB = KiB * KiB

T = TypeVar("T")


class ProgressReporter(Protocol):
    """Receives byte-count increments of an upload."""

    def update(self, n: int) -> object:
        """Add ``n`` processed bytes."""

    def close(self) -> None:
        """Finish reporting."""


def make_progress_bar(desc: str, total: int) -> ProgressReporter:
    """Create a progress bar counting bytes."""
    return tqdm(
        desc=desc,
        total=total,
        unit="B",
        unit_scale=True,
        unit_divisor=KiB,
    )


@dataclass(frozen=True)
class Fragment:
    """A contiguous byte range of the source file."""

    index: int
    offset: int
    content: bytes

    @property
    def length(self) -> int:
        """Number of bytes in the fragment."""
        return len(self.content)

    @property
    def end(self) -> int:
        """Offset of the last byte, inclusive."""
        return self.offset + self.length - 1


def read_fragments(f: BinaryIO, fragment_size: int) -> Iterator[Fragment]:
    """Read a file into fragments of ``fragment_size`` bytes in file order.

    The sequence ends at the first empty read. Only the last fragment may be
    shorter than ``fragment_size``. Errors raised by ``f.read`` propagate.

    Args:
        f (BinaryIO): File handle opened in binary mode, positioned at offset 0.
        fragment_size (int): Size of each fragment in bytes.

    Raises:
        InvalidConfigError: Raised when ``fragment_size`` is not positive.

    Yields:
        Fragment: Fragments with 0-based, gap-free indices.

    """
    if fragment_size <= 0:
        raise InvalidConfigError(f"Fragment size should be positive: {fragment_size}")

    index = 0
    offset = 0
    while True:
        content = _read_full(f, fragment_size)
        if not content:
            return
        yield Fragment(index=index, offset=offset, content=content)
        index += 1
        offset += len(content)


def _read_full(f: BinaryIO, size: int) -> bytes:
    # Raw streams may return short reads before EOF.
    buf = bytearray()
    while len(buf) < size:
        chunk = f.read(size - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


class DispatchQueue(Generic[T]):
    """Unbounded thread-safe handoff channel that can be closed."""

    def __init__(self) -> None:
        """Initializes DispatchQueue."""
        self._items: Deque[T] = deque()
        self._cond = Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the queue is closed."""
        return self._closed

    def put(self, item: T) -> None:
        """Enqueue an item.

        Raises:
            DispatchQueueClosedError: Raised when the queue is already closed.

        """
        with self._cond:
            if self._closed:
                raise DispatchQueueClosedError(repr(item))
            self._items.append(item)
            self._cond.notify()

    def get(self) -> Optional[T]:
        """Dequeue an item, blocking while the queue is empty and open.

        Returns:
            Optional[T]: The next item, or None once the queue is closed and empty.

        """
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if self._items:
                return self._items.popleft()
            return None

    def close(self) -> None:
        """Close the queue. Remaining items can still be dequeued."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def clear(self) -> int:
        """Drop every pending item and get the number of dropped items."""
        with self._cond:
            num_items = len(self._items)
            self._items.clear()
            return num_items

    def __len__(self) -> int:
        """Number of pending items."""
        with self._cond:
            return len(self._items)


class CompletionCounter:
    """Thread-safe counter of units of work in flight."""

    def __init__(self) -> None:
        """Initializes CompletionCounter."""
        self._cond = Condition()
        self._pending = 0
        self._error: Optional[BaseException] = None

    @property
    def pending(self) -> int:
        """Number of units not done yet."""
        with self._cond:
            return self._pending

    @property
    def error(self) -> Optional[BaseException]:
        """The error that aborted the counter, if any."""
        with self._cond:
            return self._error

    def add(self, n: int = 1) -> None:
        """Add ``n`` units of work."""
        with self._cond:
            self._pending += n

    def done(self) -> None:
        """Mark one unit of work as done."""
        with self._cond:
            if self._pending <= 0:
                raise ChunkcastInternalError("Completion counter went below zero.")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def abort(self, exc: BaseException) -> None:
        """Wake up the waiters with an error. Only the first error is kept."""
        with self._cond:
            if self._error is None:
                self._error = exc
            self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the counter reaches zero.

        Raises:
            BaseException: The error passed to ``abort``.

        Returns:
            bool: True if the counter reached zero, False on timeout.

        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._pending == 0 or self._error is not None, timeout
            )
            if self._error is not None:
                raise self._error
            return self._pending == 0


@dataclass(frozen=True)
class FragmentTask:
    """A fragment scheduled for an upload attempt."""

    fragment: Fragment
    failures: int = 0

    @property
    def attempt(self) -> int:
        """1-based attempt number."""
        return self.failures + 1


class FragmentTaskQueue:
    """Task queue of fragments with explicit retry semantics.

    ``submit`` enqueues a fragment for the first time and counts it in flight.
    ``complete`` acknowledges it. ``fail`` resubmits the same fragment according
    to the retry policy. ``wait`` blocks until every submitted fragment is
    acknowledged.
    """

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initializes FragmentTaskQueue."""
        self._queue: DispatchQueue[FragmentTask] = DispatchQueue()
        self._counter = CompletionCounter()
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._acked: Set[int] = set()
        self._acked_bytes = 0
        self._lock = Lock()

    @property
    def pending(self) -> int:
        """Number of fragments submitted but not acknowledged yet."""
        return self._counter.pending

    @property
    def acknowledged(self) -> FrozenSet[int]:
        """Indices of acknowledged fragments."""
        with self._lock:
            return frozenset(self._acked)

    @property
    def acknowledged_bytes(self) -> int:
        """Total bytes of acknowledged fragments."""
        with self._lock:
            return self._acked_bytes

    @property
    def error(self) -> Optional[BaseException]:
        """The error that aborted the queue, if any."""
        return self._counter.error

    def submit(self, fragment: Fragment) -> None:
        """Submit a fragment for the first time."""
        self._counter.add()
        self._queue.put(FragmentTask(fragment=fragment))

    def get(self) -> Optional[FragmentTask]:
        """Take the next task. None means the queue is closed and drained."""
        return self._queue.get()

    def complete(self, task: FragmentTask) -> None:
        """Acknowledge the fragment of the task.

        Raises:
            ChunkcastInternalError: Raised when the fragment is already acknowledged.

        """
        index = task.fragment.index
        with self._lock:
            if index in self._acked:
                raise ChunkcastInternalError(f"Fragment {index} acknowledged twice.")
            self._acked.add(index)
            self._acked_bytes += task.fragment.length
        self._counter.done()

    def fail(self, task: FragmentTask, exc: Exception) -> bool:
        """Resubmit the fragment of a failed task.

        Returns:
            bool: True if the fragment is resubmitted. False if the retry policy
                gave up, which aborts the queue, or if the queue is closed.

        """
        failures = task.failures + 1
        if not self._retry_policy.should_retry(failures):
            logger.warning(
                "Giving up fragment %d after %d failed attempts.",
                task.fragment.index,
                failures,
            )
            self.abort(MaxRetriesExceededError(exc))
            return False

        delay = self._retry_policy.get_backoff(failures)
        if delay > 0:
            logger.debug(
                "Retry fragment %d in %.2f seconds.", task.fragment.index, delay
            )
            self._sleep(delay)

        try:
            self._queue.put(FragmentTask(fragment=task.fragment, failures=failures))
        except DispatchQueueClosedError:
            return False
        return True

    def abort(self, exc: BaseException) -> None:
        """Stop dispatching and wake up the waiter with the error."""
        self._counter.abort(exc)
        self._queue.close()
        dropped = self._queue.clear()
        if dropped:
            logger.debug("Dropped %d pending fragments.", dropped)

    def close(self) -> None:
        """Close the queue. Workers exit once it is drained."""
        self._queue.close()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted fragment is acknowledged.

        Raises:
            BaseException: The error that aborted the queue.

        Returns:
            bool: True if done, False on timeout.

        """
        return self._counter.wait(timeout)


class FragmentDispatcher:
    """Pool of workers draining a fragment task queue."""

    def __init__(
        self,
        client: UploadClient,
        session: UploadSession,
        task_queue: FragmentTaskQueue,
        progress: Optional[ProgressReporter] = None,
        num_workers: Optional[int] = None,
    ) -> None:
        """Initializes FragmentDispatcher."""
        self._client = client
        self._session = session
        self._task_queue = task_queue
        self._progress = progress
        self._num_workers = num_workers or session.parallel
        self._progress_lock = Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futs: List[Future] = []

    @property
    def num_workers(self) -> int:
        """Number of workers."""
        return self._num_workers

    def start(self) -> None:
        """Start the workers."""
        if self._executor is not None:
            raise ChunkcastInternalError("Dispatcher is already started.")
        self._executor = ThreadPoolExecutor(
            max_workers=self._num_workers, thread_name_prefix="chunkcast-worker"
        )
        self._futs = [
            self._executor.submit(self._work) for _ in range(self._num_workers)
        ]

    def join(self) -> None:
        """Close the task queue and wait for the workers to exit."""
        self._task_queue.close()
        if self._executor is None:
            return
        self._executor.shutdown(wait=True)
        for fut in self._futs:
            fut.result()

    def abort(self, exc: BaseException, wait: bool = True) -> None:
        """Drop the pending fragments and stop the workers."""
        self._task_queue.abort(exc)
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    def _work(self) -> None:
        while True:
            task = self._task_queue.get()
            if task is None:
                return

            fragment = task.fragment
            logger.debug(
                "part %d start uploading (attempt %d)", fragment.index, task.attempt
            )
            try:
                ack = self._client.upload_fragment(self._session, fragment)
            except TransientError as exc:
                logger.debug("%s (retrying)", exc)
                self._task_queue.fail(task, exc)
                continue
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.error(
                    "Unexpected error while uploading part %d: %r", fragment.index, exc
                )
                self._task_queue.abort(exc)
                return

            logger.debug("part %d finished. Received %d bytes.", ack.index, ack.size)
            if self._progress is not None:
                with self._progress_lock:
                    self._progress.update(fragment.length)
            try:
                self._task_queue.complete(task)
            except ChunkcastInternalError as exc:
                self._task_queue.abort(exc)
                return
