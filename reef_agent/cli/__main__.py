"""Module execution entrypoint for `python -m reef_agent.cli`."""

from __future__ import annotations

import sys

from reef_agent.cli import main

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
