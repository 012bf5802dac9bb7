"""Operating-system facts exposed to requirement expressions."""

import platform
import re
from dataclasses import dataclass
from typing import Dict, Mapping

import psutil

UNKNOWN_VERSION = "99.99"

_FAMILY_PREFIXES = (
    (("Linux",), "linux"),
    (("Mac", "Darwin"), "mac"),
    (("SunOS", "Solaris"), "solaris"),
    (("Windows",), "windows"),
)


def os_family(name: str) -> str:
    for prefixes, family in _FAMILY_PREFIXES:
        if name.startswith(prefixes):
            return family
    return name.split(" ", 1)[0]


def simple_arch(arch: str) -> str:
    if "64" in arch and arch not in ("ia64", "ppc64"):
        return "x64"
    if "86" in arch:
        return "i586"
    if arch in ("ppc", "powerpc"):
        return "ppc"
    return arch


def simple_version(version: str) -> str:
    """``major.minor`` taken from the leading numeric part of ``version``."""
    head = re.match(r"[0-9.]*", version).group(0)
    parts = [p for p in head.split(".") if p]
    if not parts:
        return UNKNOWN_VERSION
    if len(parts) == 1:
        return f"{int(parts[0])}.0"
    return f"{int(parts[0])}.{int(parts[1])}"


@dataclass(frozen=True)
class OSInfo:
    """Name, architecture and version of a host, with derived forms and capacity."""

    name: str
    arch: str
    version: str
    processors: int
    max_memory: int
    max_swap: int

    @property
    def family(self) -> str:
        return os_family(self.name)

    @property
    def simple_arch(self) -> str:
        return simple_arch(self.arch)

    @property
    def simple_version(self) -> str:
        return simple_version(self.version)

    @classmethod
    def current(cls) -> "OSInfo":
        """Facts for the machine this process runs on."""
        return cls.from_properties({})

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "OSInfo":
        """Facts as reported by a target JDK, falling back to the local host.

        Capacity figures always come from the local host.
        """
        return cls(
            name=props.get("os.name") or platform.system() or "unknown",
            arch=props.get("os.arch") or platform.machine() or "unknown",
            version=props.get("os.version") or platform.release() or "",
            processors=psutil.cpu_count(logical=True) or 1,
            max_memory=psutil.virtual_memory().total,
            max_swap=psutil.swap_memory().total,
        )

    def as_properties(self, prefix: str = "os.") -> Dict[str, str]:
        return {
            f"{prefix}name": self.name,
            f"{prefix}arch": self.arch,
            f"{prefix}simpleArch": self.simple_arch,
            f"{prefix}version": self.version,
            f"{prefix}simpleVersion": self.simple_version,
            f"{prefix}family": self.family,
            f"{prefix}processors": str(self.processors),
            f"{prefix}maxMemory": str(self.max_memory),
            f"{prefix}maxSwap": str(self.max_swap),
        }
