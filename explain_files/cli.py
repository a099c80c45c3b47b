"""explain-files CLI tool"""

from __future__ import annotations

from explain_files.commands.explain import app


if __name__ == "__main__":  # pragma: no cover
    app()
