"""Entry point for `python -m elchi_discovery`.

Usage:
    python -m elchi_discovery
"""

from __future__ import annotations

import asyncio

from elchi_discovery.app import main

asyncio.run(main())
