"""
Client Core Logic

Addressing, node transport, state persistence, image storage and the client
process state machine.
"""

from .addressing import Address, ProcessId
from .config import Settings, load_node_directory
from .events import JobEventHub
from .state import ClientState, CurrentJob, StateStore
from .storage import ImageStorage
from .transport import MessageTransport
from .process import ClientProcess, RunOutcome, build_client_process

__all__ = [
    'Address',
    'ProcessId',
    'Settings',
    'load_node_directory',
    'JobEventHub',
    'ClientState',
    'CurrentJob',
    'StateStore',
    'ImageStorage',
    'MessageTransport',
    'ClientProcess',
    'RunOutcome',
    'build_client_process'
]
