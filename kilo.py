#!/usr/bin/env python3

# Copyright (c) 2026 Kilo contributors
# SPDX-License-Identifier: ISC

"""
Overview
========

A minimalist terminal text viewer using kiloterm (raw-mode terminal I/O).

Keys:

  Arrow keys : Move the cursor
  Ctrl-Q     : Quit

Moving left at the start of a line continues at the end of the previous
line. The cursor may rest on the line just below the last one.


Running
=======

kilo.py can be run either as a standalone executable or by calling the kilo()
function.

When run in standalone mode, the file to view can be passed as a
command-line argument. With no argument, an empty buffer and a welcome banner
are shown.

The exit status is 0 after Ctrl-Q and 1 on errors, in which case a
diagnostic is printed once the terminal has been restored.
"""

import argparse
import sys

import kiloterm
from kiloterm import Key, KiloIOError, KiloError, KeyDecoder, ctrl_key, strerror

KILO_VERSION = "0.0.1"

WELCOME = f"Kilo editor -- version {KILO_VERSION}".encode()

QUIT_KEY = ctrl_key("q")

# VT100 sequences emitted per frame
HIDE_CURSOR = b"\x1b[?25l"
SHOW_CURSOR = b"\x1b[?25h"
CURSOR_HOME = b"\x1b[H"
ERASE_LINE = b"\x1b[K"


#
# Text buffer
#


class TextBuffer:
    """Ordered rows of raw bytes, one per display line, without terminators."""

    __slots__ = ("_rows",)

    def __init__(self):
        self._rows = []

    @property
    def numrows(self):
        return len(self._rows)

    def __len__(self):
        return len(self._rows)

    def __iter__(self):
        return iter(self._rows)

    def row(self, i):
        return self._rows[i]

    def row_len(self, i):
        """Length of row 'i', or 0 for the sentinel row just past the end."""
        if i >= len(self._rows):
            return 0
        return len(self._rows[i])

    def append_row(self, data):
        self._rows.append(bytes(data))

    def load(self, lines):
        """Append every line from 'lines', stripping trailing CR/LF bytes."""
        for line in lines:
            self.append_row(line.rstrip(b"\r\n"))


def read_lines(filename):
    """Return the lines of 'filename' as bytes, terminators included."""
    try:
        with open(filename, "rb") as f:
            return f.readlines()
    except OSError as e:
        raise KiloIOError("fopen", strerror(e)) from e


#
# Viewport
#


def scroll(cursor, screen_size, offset):
    """Return the (rowoff, coloff) that keeps 'cursor' on screen.

    cursor:
      (cx, cy) buffer coordinates

    screen_size:
      (screenrows, screencols)

    offset:
      (rowoff, coloff) from the previous frame

    The offset moves by the smallest amount that brings the cursor into
    view and is left alone otherwise.
    """
    cx, cy = cursor
    screenrows, screencols = screen_size
    rowoff, coloff = offset

    if cy < rowoff:
        rowoff = cy
    if cy >= rowoff + screenrows:
        rowoff = cy - screenrows + 1

    if cx < coloff:
        coloff = cx
    if cx >= coloff + screencols:
        coloff = cx - screencols + 1

    return rowoff, coloff


#
# Editor state
#


class EditorState:
    """Everything the viewer knows: buffer, cursor, scroll offset, screen."""

    __slots__ = ("buffer", "cx", "cy", "rowoff", "coloff", "screenrows", "screencols")

    def __init__(self, buffer, screenrows, screencols):
        self.buffer = buffer
        self.cx = 0
        self.cy = 0
        self.rowoff = 0
        self.coloff = 0
        self.screenrows = screenrows
        self.screencols = screencols

    def scroll(self):
        self.rowoff, self.coloff = scroll(
            (self.cx, self.cy),
            (self.screenrows, self.screencols),
            (self.rowoff, self.coloff),
        )


#
# Rendering
#


def _draw_rows(state, ab):
    # Appends one line per screen row to the bytearray 'ab'

    buf = state.buffer
    for y in range(state.screenrows):
        filerow = y + state.rowoff
        if filerow >= buf.numrows:
            if buf.numrows == 0 and y == state.screenrows // 3:
                _draw_welcome(state.screencols, ab)
            else:
                ab += b"~"
        else:
            ab += buf.row(filerow)[state.coloff : state.coloff + state.screencols]

        ab += ERASE_LINE
        if y < state.screenrows - 1:
            ab += b"\r\n"


def _draw_welcome(screencols, ab):
    welcome = WELCOME[:screencols]
    padding = (screencols - len(welcome)) // 2
    if padding:
        ab += b"~"
        padding -= 1
    ab += b" " * padding
    ab += welcome


def render_frame(state):
    """Return the bytes that redraw the whole screen for 'state'.

    The viewport is reclamped to the cursor first, so the result always
    places the cursor inside the screen.
    """
    state.scroll()

    ab = bytearray()
    ab += HIDE_CURSOR
    ab += CURSOR_HOME

    _draw_rows(state, ab)

    ab += b"\x1b[%d;%dH" % (state.cy - state.rowoff + 1, state.cx - state.coloff + 1)
    ab += SHOW_CURSOR

    return bytes(ab)


#
# Input handling
#


def move_cursor(state, key):
    """Move the cursor for an arrow KeyEvent, keeping it inside the text."""
    buf = state.buffer

    if key.kind == Key.ARROW_LEFT:
        if state.cx != 0:
            state.cx -= 1
        elif state.cy > 0:
            state.cy -= 1
            state.cx = buf.row_len(state.cy)
    elif key.kind == Key.ARROW_RIGHT:
        if state.cx < buf.row_len(state.cy):
            state.cx += 1
    elif key.kind == Key.ARROW_UP:
        if state.cy != 0:
            state.cy -= 1
    elif key.kind == Key.ARROW_DOWN:
        if state.cy < buf.numrows:
            state.cy += 1

    # Vertical moves can land on a shorter row
    state.cx = min(state.cx, buf.row_len(state.cy))


def process_keypress(state, key):
    """Apply one KeyEvent. Returns False if the viewer should quit."""
    if key.kind == Key.CONTROL and key.byte == QUIT_KEY:
        return False

    if key.is_arrow:
        move_cursor(state, key)

    return True


class Editor:
    """The render/read/dispatch loop over one terminal session."""

    def __init__(self, session, buffer):
        self._session = session
        self._decoder = KeyDecoder(session)
        self.state = EditorState(buffer, *session.query_screen_size())

    def refresh_screen(self):
        self._session.write(render_frame(self.state))

    def run(self):
        """Loop until Ctrl-Q. kiloterm.run() clears the screen afterwards."""
        while True:
            self.refresh_screen()
            if not process_keypress(self.state, self._decoder.read_key()):
                return


#
# Main application
#


def _main(argv=None):
    parser = argparse.ArgumentParser(
        prog="kilo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=__doc__,
    )

    parser.add_argument("filename", nargs="?", help="File to view (optional)")

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {KILO_VERSION}"
    )

    args = parser.parse_args(argv)

    try:
        kilo(args.filename)
    except KiloError as e:
        sys.exit(f"kilo: {e}")


def kilo(filename=None, headless=False):
    """
    Launches the viewer, returning after the user quits.

    filename:
      File whose lines seed the buffer. None starts with an empty buffer.

    headless:
      If True, only load the buffer and return it without touching the
      terminal. Useful for testing and scripted use.

    Raises KiloError on fatal errors. The terminal has already been restored
    when it propagates.
    """
    buf = TextBuffer()
    if filename is not None:
        buf.load(read_lines(filename))

    if headless:
        return buf

    kiloterm.run(lambda session: Editor(session, buf).run())
    return buf


if __name__ == "__main__":
    _main()
