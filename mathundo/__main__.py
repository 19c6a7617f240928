"""mathundo CLI entry point.

Allows running via `python -m mathundo` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import importlib.metadata
import sys


def get_version_string() -> str:
    try:
        return importlib.metadata.version("mathundo")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def main() -> None:
    # Very small arg parsing to support version and optional filename
    args = sys.argv[1:]
    if args and args[0] in ("--version", "-V"):
        print(get_version_string())
        return

    # Lazy import to avoid importing UI deps for --version
    from .textual_app import MathUndoApp
    MathUndoApp(filename=args[0] if args else None).run()


if __name__ == "__main__":  # pragma: no cover
    main()
