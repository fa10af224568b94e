import pytest

from spherre_deployment.exceptions import (
    ArtifactNotFound,
    BatchExecutionFailed,
    ChainClientError,
    CorruptRegistry,
    DeclarationFailed,
    DeploymentConfigError,
    DeploymentError,
    DeploymentFailed,
    MissingDependency,
    UnknownContract,
)


def test_catch_all_as_deployment_error():
    cause = ChainClientError("rejected")
    exceptions = [
        UnknownContract("Spherre"),
        DeclarationFailed("Spherre", cause),
        DeploymentFailed("Spherre", cause),
        BatchExecutionFailed(cause),
        CorruptRegistry("bad json"),
        MissingDependency("Spherre"),
        ArtifactNotFound("Spherre"),
        DeploymentConfigError("bad params"),
    ]
    for exc in exceptions:
        with pytest.raises(DeploymentError):
            raise exc


def test_failures_keep_their_cause():
    cause = ChainClientError("rejected")
    assert DeclarationFailed("Spherre", cause).cause is cause
    assert BatchExecutionFailed(cause).cause is cause
    assert "rejected" in str(DeploymentFailed("Spherre", cause))


def test_missing_dependency_names_the_contract():
    exc = MissingDependency("SpherreAccount")
    assert exc.name == "SpherreAccount"
    assert "SpherreAccount" in str(exc)


def test_value_error_compatibility():
    with pytest.raises(ValueError):
        raise CorruptRegistry("bad json")
    with pytest.raises(ValueError):
        raise DeploymentConfigError("bad params")
