#!/usr/bin/env python3
"""Print storage and fidelity metrics for a synthetic dephaze scan."""

from __future__ import annotations

import sys

from dephaze.cli import main


if __name__ == "__main__":
    sys.exit(main())
