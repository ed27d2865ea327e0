"""Root conftest: applies .env.test before overlay_relay.config is imported.

The test env keeps the generation backend off and points the layout file
away from the working copy's layout-settings.json.
"""
from __future__ import annotations

import os
from pathlib import Path

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for raw_line in _env_test.read_text(encoding="utf-8").splitlines():
        entry = raw_line.strip()
        if not entry or entry.startswith("#"):
            continue
        key, _, value = entry.partition("=")
        os.environ.setdefault(key.strip(), value.strip().strip("'\""))
