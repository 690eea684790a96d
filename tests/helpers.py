"""
Test helpers: executable scripts standing in for the hanif CLI.
"""

import os
import textwrap
from pathlib import Path

HANIF_SCRIPT = textwrap.dedent("""\
    #!/usr/bin/env bash
    case "$1" in
      version) echo "hanif CLI v1.0.0" ;;
      help) echo "Usage: hanif [command]" ;;
      *) echo "unknown command: $1" >&2; exit 1 ;;
    esac
""")


def write_script(path: Path, body: str, mode: int = 0o755) -> Path:
    """Write an executable script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    os.chmod(path, mode)
    return path
