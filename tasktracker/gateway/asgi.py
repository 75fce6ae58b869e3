from __future__ import annotations

from .app import build_app

app = build_app()
