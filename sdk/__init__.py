"""
ComfyUI Client SDK

Simple Python SDK for submitting jobs through a ComfyUI client node.
"""

from .client import ComfyUIClientSDK, JobEventTracker, print_job_event

__all__ = ['ComfyUIClientSDK', 'JobEventTracker', 'print_job_event']
__version__ = '0.1.0'
