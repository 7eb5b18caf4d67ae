"""Module entrypoint for running ttscli as ``python -m ttscli``."""

from __future__ import annotations

from ttscli.cli import main


if __name__ == "__main__":
    main()
