"""Capture output written to standard stream file descriptors.

Native code (parsers, bindings, child libraries) writes straight to file
descriptors 1 and 2, bypassing ``sys.stdout``. Capturing swaps the descriptor
for the write end of a pipe and forwards whatever arrives on the read end to a
handler, one reader thread per stream, until the capture is stopped.
"""

import errno
import logging
import os
import sys
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

BUFFER_SIZE = 512
STDOUT_FD = 1
STDERR_FD = 2

OutputHandler = Callable[[bytes], None]


class OutputCaptureError(Exception):
    """Raised when a standard stream cannot be redirected."""

    pass


class StreamCapture:
    """Redirects one file descriptor into a pipe drained by a reader thread."""

    def __init__(self, fd: int, handler: OutputHandler, name: str):
        self.fd = fd
        self.name = name
        self._handler = handler
        self._original_fd: int | None = None
        self._read_fd: int | None = None
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()

    @property
    def original_fd(self) -> int | None:
        """Duplicate of the descriptor as it was before the capture started."""
        return self._original_fd

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Redirect the descriptor and start forwarding its output.

        Raises:
            OutputCaptureError: If the pipe cannot be created or attached
        """
        if self._thread is not None:
            raise OutputCaptureError(f"Capture of {self.name} already started")

        try:
            self._original_fd = os.dup(self.fd)
            read_fd, write_fd = os.pipe()
            try:
                os.dup2(write_fd, self.fd)
            finally:
                # self.fd now holds the only write end
                os.close(write_fd)
        except OSError as e:
            if self._original_fd is not None:
                os.close(self._original_fd)
                self._original_fd = None
            raise OutputCaptureError(f"Cannot redirect {self.name}: {e}") from e

        self._read_fd = read_fd
        self._thread = threading.Thread(target=self._run, name=f"{self.name}-capture", daemon=True)
        self._thread.start()
        logger.debug("Capturing %s (fd %d)", self.name, self.fd)

    def stop(self, timeout: float = 5.0) -> None:
        """Restore the descriptor and wait for pending output to be forwarded."""
        if self._thread is None or self._original_fd is None:
            return

        self._stopping.set()
        # Restoring the descriptor drops the pipe's last write end, the reader sees EOF
        os.dup2(self._original_fd, self.fd)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Capture thread for %s did not finish within %.1fs", self.name, timeout)

        os.close(self._read_fd)
        os.close(self._original_fd)
        self._read_fd = None
        self._original_fd = None
        self._thread = None

    def _run(self) -> None:
        while True:
            try:
                chunk = os.read(self._read_fd, BUFFER_SIZE)
            except OSError as e:
                if self._stopping.is_set() or e.errno == errno.EBADF:
                    break
                logger.error("Error reading captured %s: %s", self.name, e)
                continue

            if not chunk:
                if not self._stopping.is_set():
                    logger.warning("Reached end of input on %s", self.name)
                break

            try:
                self._handler(chunk)
            except Exception:
                logger.exception("Output handler for %s failed", self.name)


class OutputCapture:
    """Running captures of standard output and, optionally, standard error."""

    def __init__(self, stdout: StreamCapture, stderr: StreamCapture | None = None):
        self.stdout = stdout
        self.stderr = stderr

    def stop(self) -> None:
        if self.stderr is not None:
            self.stderr.stop()
        self.stdout.stop()


def capture_standard_streams(
    stdout_handler: OutputHandler,
    stderr_handler: OutputHandler | None = None,
) -> OutputCapture:
    """Capture standard output and, when a handler is given, standard error.

    Args:
        stdout_handler: Called with each chunk written to standard output
        stderr_handler: Called with each chunk written to standard error;
            standard error is left alone when None

    Returns:
        OutputCapture whose stop() restores the original streams

    Raises:
        OutputCaptureError: If a stream cannot be redirected
    """
    # Flush Python-level buffers so earlier output is not captured
    sys.stdout.flush()
    sys.stderr.flush()

    stdout_capture = StreamCapture(STDOUT_FD, stdout_handler, "stdout")
    stdout_capture.start()

    stderr_capture = None
    if stderr_handler is not None:
        stderr_capture = StreamCapture(STDERR_FD, stderr_handler, "stderr")
        try:
            stderr_capture.start()
        except OutputCaptureError:
            stdout_capture.stop()
            raise

    return OutputCapture(stdout_capture, stderr_capture)
