"""Domain errors for SageProvisioner."""


class ProvisionerError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class CommandNotFoundError(ProvisionerError):
    """Raised when an external command is not installed on the host."""

    def __init__(self, command: str, message: str):
        super().__init__(message)
        self.command = command


class ConfigError(ProvisionerError):
    """Raised for unreadable or invalid configuration files."""


class DiscoveryError(ProvisionerError):
    """Raised when no database instance can be offered to the operator."""

    TOOL_MISSING = "tool_missing"
    NONE_FOUND = "none_found"
    FAILED = "failed"

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class SelectionError(ProvisionerError):
    """Raised when the operator's instance choice cannot be resolved."""

    NOT_A_NUMBER = "not_a_number"
    OUT_OF_RANGE = "out_of_range"

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class StepError(ProvisionerError):
    """Raised when a provisioning step fails."""

    def __init__(self, message: str, step_name: str, criticality=None):
        super().__init__(message)
        self.step_name = step_name
        self.criticality = criticality
