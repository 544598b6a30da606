"""
Client Configuration

Settings are read from environment variables; the node directory (node name
to base URL) is a YAML file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from ..errors import AddressParseError, ConfigError
from .addressing import Address

DEFAULT_DATA_DIR = Path.home() / ".comfyui_client"
DEFAULT_NODE = "client.os"
DEFAULT_PROCESS = "client:comfyui_client:local"


def load_node_directory(path: Path) -> Dict[str, str]:
    """
    Load the node directory from YAML

    The file looks like:

        nodes:
          router.os: http://10.0.0.5:8000
          sequencer.os: http://10.0.0.6:8000

    Args:
        path: Path to the YAML file

    Returns:
        Mapping of node name to base URL (without trailing slash)

    Raises:
        ConfigError: If the file is missing, not YAML, or has the wrong shape
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid node directory YAML: {e}")
    except FileNotFoundError:
        raise ConfigError(f"Node directory not found: {path}")

    nodes = data.get("nodes", {}) if isinstance(data, dict) else None
    if not isinstance(nodes, dict):
        raise ConfigError(f"Node directory {path} must contain a 'nodes' mapping")

    directory = {}
    for name, url in nodes.items():
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise ConfigError(f"Node {name} has invalid URL {url!r}")
        directory[str(name)] = url.rstrip('/')
    return directory


@dataclass
class Settings:
    """Runtime settings for the client node"""
    node: str = DEFAULT_NODE
    process: str = DEFAULT_PROCESS
    data_dir: Path = DEFAULT_DATA_DIR
    database_url: Optional[str] = None
    nodes: Dict[str, str] = field(default_factory=dict)
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from COMFYUI_CLIENT_* environment variables"""
        data_dir = Path(os.getenv("COMFYUI_CLIENT_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser()

        nodes: Dict[str, str] = {}
        nodes_file = os.getenv("COMFYUI_CLIENT_NODES")
        if nodes_file:
            nodes = load_node_directory(Path(nodes_file).expanduser())

        raw_port = os.getenv("COMFYUI_CLIENT_PORT", "8000")
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"COMFYUI_CLIENT_PORT must be an integer, got {raw_port!r}")

        return cls(
            node=os.getenv("COMFYUI_CLIENT_NODE", DEFAULT_NODE),
            process=os.getenv("COMFYUI_CLIENT_PROCESS", DEFAULT_PROCESS),
            data_dir=data_dir,
            database_url=os.getenv("DATABASE_URL"),
            nodes=nodes,
            host=os.getenv("COMFYUI_CLIENT_HOST", "127.0.0.1"),
            port=port,
            log_level=os.getenv("COMFYUI_CLIENT_LOG_LEVEL", "info"),
        )

    @property
    def our_address(self) -> Address:
        """
        This node's own address

        Raises:
            ConfigError: If the node name or process id is malformed
        """
        try:
            return Address.parse(f"{self.node}@{self.process}")
        except AddressParseError as e:
            raise ConfigError(f"invalid COMFYUI_CLIENT_NODE or COMFYUI_CLIENT_PROCESS: {e}") from e

    @property
    def images_dir(self) -> Path:
        return self.data_dir / "images"

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def resolved_database_url(self) -> str:
        return self.database_url or f"sqlite:///{self.data_dir}/client.db"

    def ensure_directories(self):
        """Create the data, images and logs directories"""
        for path in (self.data_dir, self.images_dir, self.logs_dir):
            path.mkdir(parents=True, exist_ok=True)
