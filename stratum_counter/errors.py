from __future__ import annotations

class StratumCounterError(Exception):
    exit_code = 1

class ConfigError(StratumCounterError):
    exit_code = 2

class SocketEnumerationError(StratumCounterError):
    """The kernel socket table could not be read."""
    exit_code = 3

class RegistryUnavailableError(StratumCounterError):
    """The container runtime could not be reached."""
    exit_code = 4

class ProcessNotFound(StratumCounterError, LookupError):
    """The process exited between the socket read and the lookup."""

    def __init__(self, pid: int):
        super().__init__(f"process {pid} not found")
        self.pid = pid

class ContainerMembershipAmbiguous(UserWarning):
    pass
