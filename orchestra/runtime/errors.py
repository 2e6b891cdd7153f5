"""Exceptions raised by the agent runtime."""


class ConfigurationError(Exception):
    """Exception raised when a system cannot be run as configured."""
    pass


class SystemNotLoadedError(ConfigurationError):
    """Exception raised when running a system that was never loaded."""

    def __init__(self, system_id: str) -> None:
        super().__init__(f"System {system_id} not loaded")
        self.system_id = system_id


class EntryAgentError(ConfigurationError):
    """Exception raised when a system does not have exactly one orchestrator."""

    def __init__(self, system_id: str, count: int) -> None:
        super().__init__(
            f"System {system_id} must have exactly one orchestrator agent, found {count}"
        )
        self.system_id = system_id
        self.count = count
