"""Errors raised while deploying and wiring the Spherre contracts."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""


class DeploymentConfigError(DeploymentError, ValueError):
    """Raised when the deployment params file is malformed."""


class DeploymentAborted(DeploymentError):
    """Raised when the operator declines to continue an interactive deployment."""


class ChainClientError(DeploymentError):
    """Wraps an error reported by the node or the signing account."""


class UnknownContract(DeploymentError, LookupError):
    """Raised when no compiled artifact exists for a contract name."""

    def __init__(self, contract_name: str):
        super().__init__(f"No compiled contract found with name '{contract_name}'.")
        self.contract_name = contract_name


class DeclarationFailed(DeploymentError):
    def __init__(self, contract_name: str, cause: Exception):
        super().__init__(f"Declaration of {contract_name} failed: {cause}")
        self.contract_name = contract_name
        self.cause = cause


class DeploymentFailed(DeploymentError):
    def __init__(self, contract_name: str, cause: Exception):
        super().__init__(f"Deployment of {contract_name} failed: {cause}")
        self.contract_name = contract_name
        self.cause = cause


class BatchExecutionFailed(DeploymentError):
    """
    Raised when a batch of calls could not be executed.
    The whole batch is considered failed, even if some calls would have succeeded alone.
    """

    def __init__(self, cause: Exception):
        super().__init__(f"Batch execution failed: {cause}")
        self.cause = cause


class CorruptRegistry(DeploymentError, ValueError):
    """Raised when a persisted registry cannot be parsed."""


class ArtifactNotFound(DeploymentError, LookupError):
    """Raised when a registry has no entry for a contract name."""

    def __init__(self, name: str):
        super().__init__(f"No registry entry for '{name}'.")
        self.name = name


class MissingDependency(DeploymentError, LookupError):
    """Raised when a wiring step references a contract absent from the registry."""

    def __init__(self, name: str):
        super().__init__(f"Missing dependency '{name}' in registry; cannot wire contracts.")
        self.name = name
