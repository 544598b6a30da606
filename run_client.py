#!/usr/bin/env python
"""
Client node startup script

Run from project root to start the ComfyUI client node. Configuration comes
from COMFYUI_CLIENT_* environment variables.
"""

import logging

import uvicorn

from comfyui_client.core import Settings

if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    uvicorn.run(
        "comfyui_client.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level
    )
