"""
Route dependencies
"""

from fastapi.requests import HTTPConnection

from ..core import ClientProcess, JobEventHub


def get_process(connection: HTTPConnection) -> ClientProcess:
    """The ClientProcess created at startup"""
    return connection.app.state.process


def get_events(connection: HTTPConnection) -> JobEventHub:
    """The event hub shared by the process and the WebSocket endpoint"""
    return connection.app.state.events
