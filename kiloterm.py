#!/usr/bin/env python3

# Copyright (c) 2026 Kilo contributors
# SPDX-License-Identifier: ISC

"""
kiloterm -- raw-mode terminal I/O for the kilo viewer

Owns the terminal device for the lifetime of the viewer: switches it into
raw mode, reads single bytes with a 100 ms timeout, decodes arrow-key escape
sequences, writes whole frames in one go and puts everything back on exit.

Zero external dependencies. Uses only Python stdlib: termios and os.

Platform support: Unix (Linux, macOS), any VT100-capable terminal.
"""

import os
import sys
import termios

ESC = 0x1B

# Clear the whole screen and home the cursor
CLEAR_SCREEN = b"\x1b[2J\x1b[H"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class KiloError(Exception):
    """Fatal viewer error.

    op:
      Name of the failing operation, e.g. "tcgetattr" or "read"

    reason:
      Human-readable description of the underlying OS error
    """

    def __init__(self, op, reason):
        self.op = op
        self.reason = reason
        super().__init__(f"{op}: {reason}")


class ConfigurationError(KiloError):
    """Terminal attributes could not be read, applied or restored."""


class DeviceQueryError(KiloError):
    """The terminal size could not be determined."""


class KiloIOError(KiloError):
    """Terminal or seed file I/O failed."""


def strerror(exc):
    """Return the OS error description carried by 'exc'."""
    if isinstance(exc, OSError):
        return exc.strerror or str(exc)
    # termios.error is a plain (errno, message) exception, not an OSError
    if len(exc.args) == 2:
        return exc.args[1]
    return str(exc)


# ---------------------------------------------------------------------------
# Input constants
# ---------------------------------------------------------------------------


class Key:
    """Key event kinds."""

    PRINTABLE = "printable"
    CONTROL = "control"
    ARROW_UP = "key_up"
    ARROW_DOWN = "key_down"
    ARROW_LEFT = "key_left"
    ARROW_RIGHT = "key_right"
    ESCAPE = "key_escape"


class KeyEvent:
    """One decoded key press: a kind from Key plus the raw byte, if any."""

    __slots__ = ("kind", "byte")

    def __init__(self, kind, byte=None):
        self.kind = kind
        self.byte = byte

    # Shared instances for the keys that carry no byte; assigned below
    ARROW_UP = None
    ARROW_DOWN = None
    ARROW_LEFT = None
    ARROW_RIGHT = None
    ESCAPE = None

    @staticmethod
    def from_byte(b):
        """Classify a single input byte as Control or Printable."""
        if b < 0x20 or b == 0x7F:
            return KeyEvent(Key.CONTROL, b)
        return KeyEvent(Key.PRINTABLE, b)

    @property
    def is_arrow(self):
        return self.kind in _ARROW_KINDS

    def __eq__(self, other):
        if not isinstance(other, KeyEvent):
            return NotImplemented
        return self.kind == other.kind and self.byte == other.byte

    def __hash__(self):
        return hash((self.kind, self.byte))

    def __repr__(self):
        if self.byte is None:
            return f"KeyEvent({self.kind})"
        return f"KeyEvent({self.kind}, {self.byte:#04x})"


KeyEvent.ARROW_UP = KeyEvent(Key.ARROW_UP)
KeyEvent.ARROW_DOWN = KeyEvent(Key.ARROW_DOWN)
KeyEvent.ARROW_LEFT = KeyEvent(Key.ARROW_LEFT)
KeyEvent.ARROW_RIGHT = KeyEvent(Key.ARROW_RIGHT)
KeyEvent.ESCAPE = KeyEvent(Key.ESCAPE)

_ARROW_KINDS = frozenset(
    (Key.ARROW_UP, Key.ARROW_DOWN, Key.ARROW_LEFT, Key.ARROW_RIGHT)
)


def ctrl_key(ch):
    """Return the byte a terminal sends for Ctrl+'ch' (e.g. ctrl_key("q"))."""
    return ord(ch) & 0x1F


# The two bytes that follow ESC in a recognized CSI sequence
_ESCAPE_SEQUENCES = {
    b"[A": KeyEvent.ARROW_UP,
    b"[B": KeyEvent.ARROW_DOWN,
    b"[C": KeyEvent.ARROW_RIGHT,
    b"[D": KeyEvent.ARROW_LEFT,
}


# ---------------------------------------------------------------------------
# Terminal session
# ---------------------------------------------------------------------------


class TerminalSession:
    """Raw-mode configuration of one terminal and its restoration.

    Created via run() in normal use. 'fd_in'/'fd_out' default to stdin and
    stdout; both must be terminals.
    """

    def __init__(self, fd_in=None, fd_out=None):
        self._fd_in = sys.stdin.fileno() if fd_in is None else fd_in
        self._fd_out = sys.stdout.fileno() if fd_out is None else fd_out

        # A raw tty with VMIN=0 reports a timeout and end-of-input the same
        # way, so redirected input is refused up front
        if not os.isatty(self._fd_in):
            raise ConfigurationError("isatty", "standard input is not a terminal")
        if not os.isatty(self._fd_out):
            raise ConfigurationError("isatty", "standard output is not a terminal")

        self._orig_termios = None

    @property
    def active(self):
        return self._orig_termios is not None

    def enter(self):
        """Save the current attributes and switch the terminal to raw mode."""
        try:
            self._orig_termios = termios.tcgetattr(self._fd_in)
        except termios.error as e:
            raise ConfigurationError("tcgetattr", strerror(e)) from e

        raw = raw_attributes(self._orig_termios)
        try:
            termios.tcsetattr(self._fd_in, termios.TCSAFLUSH, raw)
        except termios.error as e:
            raise ConfigurationError("tcsetattr", strerror(e)) from e

    def exit(self):
        """Restore the attributes saved by enter(). No-op if none were saved."""
        if self._orig_termios is None:
            return

        orig = self._orig_termios
        self._orig_termios = None
        try:
            termios.tcsetattr(self._fd_in, termios.TCSAFLUSH, orig)
        except termios.error as e:
            raise ConfigurationError("tcsetattr", strerror(e)) from e

    def close(self):
        """Clear the screen, then restore the terminal."""
        try:
            self.clear_screen()
        finally:
            self.exit()

    def query_screen_size(self):
        """Return (rows, cols) as reported by the terminal device."""
        try:
            size = os.get_terminal_size(self._fd_out)
        except OSError as e:
            raise DeviceQueryError("getWindowSize", strerror(e)) from e

        if size.columns == 0:
            raise DeviceQueryError("getWindowSize", "terminal reported zero columns")

        return size.lines, size.columns

    # --- Output ---

    def write(self, data):
        """Write 'data' to the terminal in a single write where possible."""
        view = memoryview(data)
        while view:
            try:
                n = os.write(self._fd_out, view)
            except OSError as e:
                raise KiloIOError("write", strerror(e)) from e
            view = view[n:]

    def clear_screen(self):
        self.write(CLEAR_SCREEN)

    # --- Input ---

    def read(self):
        """Read at most one byte. Returns b"" if the 100 ms timeout expired."""
        try:
            return os.read(self._fd_in, 1)
        except BlockingIOError:
            # EAGAIN: no byte yet, same as a timeout
            return b""
        except OSError as e:
            raise KiloIOError("read", strerror(e)) from e


def raw_attributes(attrs):
    """Return a raw-mode copy of a termios.tcgetattr() attribute list."""
    raw = list(attrs)
    raw[6] = list(attrs[6])

    # IFLAG: no break-to-SIGINT, CR-to-NL, parity check, stripping, XON/XOFF
    raw[0] &= ~(
        termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
    )
    # OFLAG: no output post-processing ("\n" -> "\r\n")
    raw[1] &= ~termios.OPOST
    # CFLAG: 8-bit characters
    raw[2] |= termios.CS8
    # LFLAG: no echo, canonical mode, Ctrl-V or signal keys
    raw[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)

    # read() returns after 1/10 s even if no byte arrived
    raw[6][termios.VMIN] = 0
    raw[6][termios.VTIME] = 1

    return raw


# ---------------------------------------------------------------------------
# Key decoder
# ---------------------------------------------------------------------------


class KeyDecoder:
    """Turns the session's byte stream into KeyEvents."""

    def __init__(self, session):
        self._session = session

    def read_key(self):
        """Block until a key arrives and return it as a KeyEvent.

        A lone ESC is reported as KeyEvent.ESCAPE when the rest of a
        sequence does not show up within one read timeout.
        """
        while True:
            data = self._session.read()
            if data:
                break

        b = data[0]
        if b != ESC:
            return KeyEvent.from_byte(b)

        seq = self._session.read()
        if not seq:
            return KeyEvent.ESCAPE
        seq += self._session.read()
        if len(seq) != 2:
            return KeyEvent.ESCAPE

        return _ESCAPE_SEQUENCES.get(seq, KeyEvent.ESCAPE)


# ---------------------------------------------------------------------------
# Safe entry point
# ---------------------------------------------------------------------------


def run(fn, fd_in=None, fd_out=None):
    """Safe wrapper: enter raw mode, call fn(session), restore on exit.

    The screen is cleared and the saved attributes restored on every exit
    path, including exceptions raised by 'fn'. This is the only place the
    screen is cleared on the way out.

    If 'fn' (or entering raw mode) fails, that error is the one raised,
    even if restoring the terminal fails as well.
    """
    session = TerminalSession(fd_in, fd_out)
    try:
        session.enter()
        result = fn(session)
    except BaseException:
        try:
            session.close()
        except KiloError:
            pass
        raise

    session.close()
    return result
