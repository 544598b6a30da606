"""
Node Addressing

Process ids (`process:package:publisher`) and addresses
(`node@process:package:publisher`) used to route messages between nodes.
"""

from dataclasses import dataclass

from ..errors import AddressParseError


def _check_segment(segment: str, what: str, raw: str) -> str:
    if not segment:
        raise AddressParseError(f"empty {what} in {raw!r}")
    if ":" in segment or "@" in segment:
        raise AddressParseError(f"invalid character in {what} of {raw!r}")
    return segment


@dataclass(frozen=True)
class ProcessId:
    """Identifies a process installed on a node"""
    process: str
    package: str
    publisher: str

    @classmethod
    def parse(cls, raw: str) -> "ProcessId":
        """
        Parse a `process:package:publisher` string

        Raises:
            AddressParseError: If the string does not have three valid segments
        """
        if not isinstance(raw, str):
            raise AddressParseError(f"process id must be a string, got {type(raw).__name__}")
        parts = raw.split(":")
        if len(parts) != 3:
            raise AddressParseError(
                f"process id must look like process:package:publisher, got {raw!r}"
            )
        process, package, publisher = (
            _check_segment(part, name, raw)
            for part, name in zip(parts, ("process", "package", "publisher"))
        )
        return cls(process=process, package=package, publisher=publisher)

    @property
    def package_id(self) -> str:
        return f"{self.package}:{self.publisher}"

    def __str__(self) -> str:
        return f"{self.process}:{self.package}:{self.publisher}"


@dataclass(frozen=True)
class Address:
    """A process on a specific node"""
    node: str
    process: ProcessId

    @classmethod
    def parse(cls, raw: str) -> "Address":
        """
        Parse a `node@process:package:publisher` string

        Raises:
            AddressParseError: If the node or process part is malformed
        """
        if not isinstance(raw, str):
            raise AddressParseError(f"address must be a string, got {type(raw).__name__}")
        if raw.count("@") != 1:
            raise AddressParseError(
                f"address must look like node@process:package:publisher, got {raw!r}"
            )
        node, process = raw.split("@")
        _check_segment(node, "node", raw)
        return cls(node=node, process=ProcessId.parse(process))

    @property
    def package_id(self) -> str:
        return self.process.package_id

    def __str__(self) -> str:
        return f"{self.node}@{self.process}"
