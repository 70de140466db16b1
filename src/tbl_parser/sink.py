"""Output destination chosen once per command."""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator


@contextmanager
def open_sink(path: str | Path | None) -> Iterator[BinaryIO]:
    """Yield a binary writable for ``path``, or standard output when None.

    Standard output is flushed but left open on exit.
    """
    if path is None:
        stream = sys.stdout.buffer
        try:
            yield stream
        finally:
            stream.flush()
        return

    with open(path, 'wb') as f:
        yield f
