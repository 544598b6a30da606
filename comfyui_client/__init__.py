"""
ComfyUI Client Node

FastAPI-based client that submits ComfyUI jobs to a provider network and
stores the images providers send back.

The ASGI app lives in comfyui_client.main (see run_client.py).
"""

__version__ = '0.1.0'
