"""Entry point for `python -m kubescope`.

Usage:
    python -m kubescope
"""

from __future__ import annotations

import asyncio

from kubescope.app import main

asyncio.run(main())
