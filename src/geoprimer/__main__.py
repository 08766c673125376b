"""Module entrypoint for `python -m geoprimer`."""

from __future__ import annotations

from geoprimer.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
