# Copyright (c) 2026 Kilo contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures and helpers for the kilo pytest suite.

import fcntl
import os
import select
import struct
import sys
import termios

import pytest

# Ensure kilo and kiloterm are importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Stands for one expired 100 ms read in scripted input
TIMEOUT = None

# ---------------------------------------------------------------------------
# Fake terminal session
# ---------------------------------------------------------------------------


class FakeSession:
    """Stand-in for kiloterm.TerminalSession with scripted input.

    'script' holds bytes objects (split into single-byte reads) and TIMEOUT
    markers (an empty read).
    """

    def __init__(self, *script, size=(24, 80)):
        self._reads = []
        for item in script:
            if item is TIMEOUT:
                self._reads.append(b"")
            else:
                self._reads.extend(bytes([b]) for b in item)
        self.size = size
        self.writes = []

    @property
    def pending(self):
        return len(self._reads)

    def read(self):
        if not self._reads:
            raise AssertionError("read past the end of the scripted input")
        return self._reads.pop(0)

    def write(self, data):
        self.writes.append(bytes(data))

    def query_screen_size(self):
        return self.size


# ---------------------------------------------------------------------------
# Pseudo-terminals
# ---------------------------------------------------------------------------


def set_winsize(fd, rows, cols):
    """Set the window size the kernel reports for the pty behind 'fd'."""
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, 0, 0))


def read_all(fd):
    """Collect the output queued on the pty master 'fd' until it goes quiet."""
    chunks = []
    timeout = 1.0
    while True:
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            break
        data = os.read(fd, 4096)
        if not data:
            break
        chunks.append(data)
        timeout = 0.1
    return b"".join(chunks)


@pytest.fixture
def pty_pair():
    """A (master, slave) pseudo-terminal pair sized 24x80."""
    master, slave = os.openpty()
    set_winsize(slave, 24, 80)
    yield master, slave
    os.close(master)
    os.close(slave)
