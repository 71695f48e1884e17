"""Entry point for log writer module."""

from __future__ import annotations

from apps.log_writer.main import run

if __name__ == "__main__":
    run()
