from __future__ import annotations

import os
import tempfile

from pathlib import Path

def write_atomic(path: Path, data: bytes, make_dirs: bool=False) -> None:
    """Write data to `path` so readers only ever see the old or the new contents.

    The data goes to a temporary file in the same directory which is then renamed over `path`. If
    `make_dirs` is False, a missing parent directory raises `FileNotFoundError`.
    """
    if make_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)
    # temp file must be in the same dir for the rename to be atomic
    with tempfile.NamedTemporaryFile(
        mode='wb',
        dir=path.parent,
        prefix=path.name + '.',
        suffix='.tmp',
        delete=False
    ) as tf:
        try:
            tf.write(data)
            tf.flush()
            os.fsync(tf.fileno())
        except BaseException:
            tf.close()
            os.unlink(tf.name)
            raise
    try:
        os.replace(tf.name, path)
    except OSError:
        os.unlink(tf.name)
        raise

def read_file(path: Path) -> bytes|None:
    """Read file contents, returning None if the file doesn't exist."""
    try:
        with open(path, 'rb') as f:
            return f.read()
    except (FileNotFoundError, IsADirectoryError):
        return None
