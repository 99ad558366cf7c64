"""
Protocol definition for report output backends.

Defines the interface the change reporter writes its lines to,
and the console implementation used by the command line.
"""

import sys
from typing import Protocol, TextIO, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """
    Anything that can receive the lines of a check report.

    Lines arrive one at a time in report order, already rendered.
    """

    def send_line(self, line: str) -> None:
        """
        Emit one line of the check report.

        Parameters
        ----------
        line : str
            The rendered report line, without trailing newline.
        """
        ...


class ConsoleNotifier:
    """Writes report lines to a text stream, stdout by default."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def send_line(self, line: str) -> None:
        # Resolved at call time so redirected/captured stdout is honoured
        print(line, file=self.stream or sys.stdout, flush=True)
