from __future__ import annotations
import platform

from .containers import DockerRegistry
from .generic import GenericSocketTable
from .linux import LinuxSocketTable
from .processes import ProcessInventory

def default_socket_table():
    if platform.system() == 'Linux':
        return LinuxSocketTable()
    return GenericSocketTable()

__all__ = [
    "DockerRegistry",
    "GenericSocketTable",
    "LinuxSocketTable",
    "ProcessInventory",
    "default_socket_table",
]
