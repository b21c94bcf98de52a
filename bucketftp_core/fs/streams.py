"""Streaming bridge between protocol file handles and whole-object GET/PUT.

Reads stream straight from the GET response body. Writes go through a bounded
``ByteConduit`` drained by one background upload call, so memory use does not
depend on the file size.
"""

from __future__ import annotations

import enum
import io
import logging
import threading
import weakref
from concurrent.futures import Future, ThreadPoolExecutor

from bucketftp_core.config import DEFAULT_CONDUIT_CAPACITY
from bucketftp_core.errors import (
    BucketFtpError,
    InvalidStateError,
    NotSupportedError,
    UpstreamError,
)
from bucketftp_core.observability import error_log_fields, log_event
from bucketftp_core.store.object_store import ObjectBody, ObjectStoreClient

logger = logging.getLogger(__name__)


class ByteConduit(io.RawIOBase):
    """Bounded single-producer/single-consumer byte pipe.

    ``write`` blocks while the buffer holds ``capacity`` bytes. ``read(n)`` blocks until
    ``n`` bytes are available or the writer has closed, like reading a regular file.
    Closing the reader makes pending and future writes fail with ``BrokenPipeError``;
    aborting the writer makes the reader fail the same way instead of seeing EOF.
    """

    def __init__(self, capacity: int = DEFAULT_CONDUIT_CAPACITY) -> None:
        super().__init__()
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._buffer = bytearray()
        self._cond = threading.Condition()
        self._writer_closed = False
        self._writer_aborted = False
        self._reader_closed = False

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    @property
    def buffered(self) -> int:
        with self._cond:
            return len(self._buffer)

    def write(self, data) -> int:  # noqa: ANN001
        view = memoryview(data).cast("B")
        written = 0
        with self._cond:
            if self._writer_closed:
                raise ValueError("write to a conduit whose writer is closed")
            while written < len(view):
                while len(self._buffer) >= self.capacity and not self._reader_closed:
                    self._cond.wait()
                if self._reader_closed:
                    raise BrokenPipeError("conduit reader is closed")
                room = self.capacity - len(self._buffer)
                chunk = view[written : written + room]
                self._buffer += chunk
                written += len(chunk)
                self._cond.notify_all()
        return written

    def read(self, size: int | None = -1) -> bytes:
        chunks = bytearray()
        with self._cond:
            while size is None or size < 0 or len(chunks) < size:
                while not self._buffer and not self._writer_closed and not self._reader_closed:
                    self._cond.wait()
                if self._writer_aborted:
                    raise BrokenPipeError("conduit writer aborted")
                if self._reader_closed:
                    raise ValueError("read from a closed conduit")
                if not self._buffer:
                    break
                wanted = len(self._buffer) if size is None or size < 0 else size - len(chunks)
                taken = self._buffer[:wanted]
                del self._buffer[:wanted]
                chunks += taken
                self._cond.notify_all()
        return bytes(chunks)

    def readinto(self, buffer) -> int:  # noqa: ANN001
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def close_writer(self, *, abort: bool = False) -> None:
        """Signal EOF to the reader, or a failure when ``abort`` is set."""

        with self._cond:
            self._writer_closed = True
            self._writer_aborted = self._writer_aborted or abort
            self._cond.notify_all()

    def close_reader(self) -> None:
        """Stop consuming; buffered bytes are dropped and blocked writers wake up."""

        with self._cond:
            self._reader_closed = True
            self._buffer.clear()
            self._cond.notify_all()

    def close(self) -> None:
        self.close_writer()
        super().close()


def _run_upload(store: ObjectStoreClient, key: str, conduit: ByteConduit) -> None:
    # Must not reference the handle, or a dropped handle could never be collected.
    try:
        store.upload_stream(key, conduit)
    finally:
        # Unblock a writer stuck on a full buffer if the upload stopped early.
        conduit.close_reader()


class HandleState(enum.Enum):
    IDLE = "idle"
    READ_OPEN = "read_open"
    WRITE_OPEN = "write_open"
    CLOSED = "closed"


READ_MODES = {"r", "rb"}
WRITE_MODES = {"w", "wb"}


class ObjectFileHandle:
    """File-like handle over one object, opened read-only or write-only.

    Opening fails fast: a read handle issues its GET and a write handle its empty PUT
    before the constructor returns. A write handle's upload errors are raised by
    ``close()``.
    """

    def __init__(
        self,
        store: ObjectStoreClient,
        key: str,
        mode: str = "rb",
        *,
        conduit_capacity: int = DEFAULT_CONDUIT_CAPACITY,
    ) -> None:
        if mode not in READ_MODES | WRITE_MODES:
            raise NotSupportedError(f"Unsupported open mode: {mode!r}")
        self.key = key
        self.mode = mode
        self.state = HandleState.IDLE
        self._store = store
        self._response: ObjectBody | None = None
        self._conduit: ByteConduit | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._upload: Future[None] | None = None
        self._bytes_written = 0
        self._finalizer: weakref.finalize | None = None

        if mode in READ_MODES:
            self._open_read()
        else:
            self._open_write(conduit_capacity)

    @property
    def name(self) -> str:
        return self.key

    @property
    def closed(self) -> bool:
        return self.state is HandleState.CLOSED

    def readable(self) -> bool:
        return self.state is HandleState.READ_OPEN

    def writable(self) -> bool:
        return self.state is HandleState.WRITE_OPEN

    def seekable(self) -> bool:
        return False

    def _open_read(self) -> None:
        self._response = self._store.get_object(self.key)
        self.state = HandleState.READ_OPEN
        log_event(logger, "bucketftp.open", key=self.key, mode="read", size=self._response.size)

    def _open_write(self, conduit_capacity: int) -> None:
        # Create the object up front so permission problems surface before any write.
        self._store.put_object(self.key, b"")
        self._conduit = ByteConduit(conduit_capacity)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bucketftp-upload")
        self._upload = self._executor.submit(_run_upload, self._store, self.key, self._conduit)
        # A handle dropped without close() or abort() cancels its upload, so the worker
        # thread can finish and the interpreter can exit.
        self._finalizer = weakref.finalize(self, self._conduit.close_writer, abort=True)
        self.state = HandleState.WRITE_OPEN
        log_event(logger, "bucketftp.open", key=self.key, mode="write")

    def read(self, size: int = -1) -> bytes:
        if self.state is not HandleState.READ_OPEN or self._response is None:
            raise InvalidStateError(f"Handle for {self.key!r} is not open for reading")
        return self._response.body.read(size)

    def readinto(self, buffer) -> int:  # noqa: ANN001
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def write(self, data: bytes) -> int:
        if self.state is not HandleState.WRITE_OPEN or self._conduit is None:
            raise InvalidStateError(f"Handle for {self.key!r} is not open for writing")
        try:
            written = self._conduit.write(data)
        except BrokenPipeError as exc:
            raise self._upload_failure() from exc
        self._bytes_written += written
        return written

    def _upload_failure(self) -> BucketFtpError:
        assert self._upload is not None
        exc = self._upload.exception()
        if isinstance(exc, BucketFtpError):
            return exc
        if exc is not None:
            return UpstreamError(f"upload failed for {self.key!r}: {exc}")
        return UpstreamError(f"upload for {self.key!r} stopped before the end of the stream")

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        raise NotSupportedError("Unable to seek in an object store object")

    def tell(self) -> int:
        raise NotSupportedError("Unable to tell the position in an object store object")

    def close(self) -> None:
        """Release the GET body, or finish the upload and raise its error if it failed."""

        if self.state is HandleState.CLOSED:
            return
        try:
            if self.state is HandleState.READ_OPEN:
                self._close_read()
            elif self.state is HandleState.WRITE_OPEN:
                self._finish_write(abort=False)
        finally:
            self.state = HandleState.CLOSED

    def abort(self) -> None:
        """Cancel a write: the upload fails and the partial data is discarded.

        The empty object created when the handle was opened remains.
        """

        if self.state is HandleState.WRITE_OPEN:
            self.state = HandleState.CLOSED
            try:
                self._finish_write(abort=True)
            except BucketFtpError:
                pass
            log_event(logger, "bucketftp.upload", key=self.key, stage="aborted")
            return
        self.close()

    def _close_read(self) -> None:
        assert self._response is not None
        try:
            self._response.body.close()
        finally:
            self._response = None

    def _finish_write(self, *, abort: bool) -> None:
        assert self._conduit is not None and self._upload is not None and self._executor is not None
        if self._finalizer is not None:
            self._finalizer.detach()
        self._conduit.close_writer(abort=abort)
        try:
            self._upload.result()
        except BucketFtpError as exc:
            if not abort:
                log_event(
                    logger,
                    "bucketftp.upload",
                    level=logging.ERROR,
                    key=self.key,
                    stage="failed",
                    **error_log_fields(exc),
                )
            raise
        except Exception as exc:  # noqa: BLE001
            raise UpstreamError(f"upload failed for {self.key!r}: {exc}") from exc
        finally:
            self.state = HandleState.CLOSED
            self._executor.shutdown(wait=True)
        log_event(logger, "bucketftp.upload", key=self.key, stage="done", bytes=self._bytes_written)

    def __enter__(self) -> ObjectFileHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        if exc_type is not None and self.state is HandleState.WRITE_OPEN:
            self.abort()
        else:
            self.close()

    def __repr__(self) -> str:
        return f"ObjectFileHandle(key={self.key!r}, mode={self.mode!r}, state={self.state.value})"
