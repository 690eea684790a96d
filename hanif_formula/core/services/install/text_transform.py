"""
Text transform: pattern-conditioned substitution in installed files.

``inreplace`` is pure and reports whether the pattern matched, so the
caller decides what a miss means. ``inreplace_file`` applies it to a
file on disk without disturbing anything outside the match: bytes are
round-tripped through ``surrogateescape``, line endings are left as-is,
and the file's permission bits survive the rewrite.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

Pattern = str | re.Pattern[str]


def ambient_shebang_pattern(runtime: str) -> re.Pattern[str]:
    """Match the exact ``#!/usr/bin/env <runtime>`` directive on line 1.

    Matches ``#!/usr/bin/env bash`` and ``#!/usr/bin/env bash -e`` but
    not ``#!/usr/bin/env bashdb``, variants with extra spacing such as
    ``#! /usr/bin/env  bash``, or a directive on any later line.
    """
    return re.compile(r"\A#!/usr/bin/env " + re.escape(runtime) + r"(?=[ \t\r\n]|\Z)")


def shebang_for(executable: Path) -> str:
    return f"#!{executable}"


def inreplace(content: str, pattern: Pattern, replacement: str) -> tuple[str, bool]:
    """Replace every match of ``pattern`` in ``content``.

    The replacement is literal text; backslashes and group references
    are not expanded.

    Returns:
        ``(new_content, matched)``. When nothing matched, ``new_content``
        is ``content`` unchanged.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    new_content, count = regex.subn(lambda _m: replacement, content)
    return new_content, count > 0


def inreplace_file(path: Path, pattern: Pattern, replacement: str) -> bool:
    """Apply :func:`inreplace` to ``path`` in place.

    The file is written only when the pattern matched. The write goes to
    a sibling temp file that inherits the original mode, then replaces
    the original atomically.

    Returns:
        Whether the pattern matched (and the file was rewritten).

    Raises:
        OSError: Reading or writing the file failed.
    """
    path = Path(path)
    content = path.read_bytes().decode("utf-8", errors="surrogateescape")
    new_content, matched = inreplace(content, pattern, replacement)
    if not matched:
        return False

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(new_content.encode("utf-8", errors="surrogateescape"))
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug("Rewrote %s", path)
    return True
