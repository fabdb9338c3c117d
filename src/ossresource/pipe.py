"""Bounded in-process byte pipe.

``BytePipe`` is a fixed-capacity ring buffer shared by one writer thread
and one reader thread. Writers block while the buffer is full and readers
block while it is empty, so memory use is bounded by the capacity no
matter how much data flows through.

End-of-stream and failure are signalled through the ends:

- ``close_writer()``: no more data; the reader drains what is buffered and
  then sees ``b""``.
- ``close_reader()``: the consumer is gone; buffered data is discarded and
  further writes raise ``BrokenPipeError``.
- ``abort()``: the producer gave up; further reads raise
  ``BrokenPipeError`` even if data is still buffered.
"""

import io
import threading

# Default pipe capacity: 64 KB
DEFAULT_CAPACITY = 64 * 1024


class BytePipe:
    """Blocking FIFO of bytes backed by a ring buffer.

    Attributes:
        capacity: Maximum number of bytes buffered at once.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"Pipe capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._buf = bytearray(capacity)
        self._head = 0  # index of the oldest buffered byte
        self._size = 0
        self._writer_closed = False
        self._reader_closed = False
        self._aborted = False
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return self._size

    @property
    def writer_closed(self) -> bool:
        return self._writer_closed

    @property
    def reader_closed(self) -> bool:
        return self._reader_closed

    def write(self, data) -> int:
        """Append all of ``data``, blocking while the buffer is full.

        Returns:
            The number of bytes written (always ``len(data)``).

        Raises:
            ValueError: If the write end was already closed.
            BrokenPipeError: If the read end is closed.
        """
        view = memoryview(data).cast("B")
        total = len(view)
        offset = 0
        with self._cond:
            if self._writer_closed:
                raise ValueError("write to a closed pipe")
            while offset < total:
                while self._size == self.capacity and not self._reader_closed:
                    self._cond.wait()
                if self._reader_closed:
                    raise BrokenPipeError("read end of the pipe is closed")

                n = min(total - offset, self.capacity - self._size)
                tail = (self._head + self._size) % self.capacity
                first = min(n, self.capacity - tail)
                self._buf[tail:tail + first] = view[offset:offset + first]
                if n > first:
                    self._buf[0:n - first] = view[offset + first:offset + n]
                self._size += n
                offset += n
                self._cond.notify_all()
        return total

    def read(self, n: int = -1) -> bytes:
        """Remove and return up to ``n`` buffered bytes.

        Blocks until at least one byte is available or the write end is
        closed. ``n < 0`` returns everything currently buffered.

        Returns:
            The bytes read, or ``b""`` at end-of-stream.

        Raises:
            BrokenPipeError: If the writer aborted the pipe.
        """
        if n == 0:
            return b""
        with self._cond:
            while self._size == 0 and not self._writer_closed and not self._aborted:
                self._cond.wait()
            if self._aborted:
                raise BrokenPipeError("pipe was aborted by the writer")
            if self._size == 0:
                return b""

            if n < 0 or n > self._size:
                n = self._size
            first = min(n, self.capacity - self._head)
            out = bytes(self._buf[self._head:self._head + first])
            if n > first:
                out += bytes(self._buf[0:n - first])
            self._head = (self._head + n) % self.capacity
            self._size -= n
            self._cond.notify_all()
            return out

    def close_writer(self) -> None:
        """Signal end-of-stream to the reader."""
        with self._cond:
            self._writer_closed = True
            self._cond.notify_all()

    def close_reader(self) -> None:
        """Stop consuming; unblocks and fails any pending or future writes."""
        with self._cond:
            self._reader_closed = True
            self._size = 0
            self._cond.notify_all()

    def abort(self) -> None:
        """Abandon the stream; the reader fails instead of seeing EOF."""
        with self._cond:
            self._aborted = True
            self._writer_closed = True
            self._cond.notify_all()


class PipeReader(io.RawIOBase):
    """Readable file object over the read end of a BytePipe.

    ``readinto`` fills the whole buffer unless end-of-stream is reached,
    so consumers that treat a short read as end-of-data (some upload
    managers do) see the complete stream.
    """

    def __init__(self, pipe: BytePipe) -> None:
        super().__init__()
        self._pipe = pipe

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        view = memoryview(b).cast("B")
        filled = 0
        while filled < len(view):
            chunk = self._pipe.read(len(view) - filled)
            if not chunk:
                break
            view[filled:filled + len(chunk)] = chunk
            filled += len(chunk)
        return filled

    def close(self) -> None:
        if not self.closed:
            self._pipe.close_reader()
        super().close()
