import pytest

from spherre_deployment.constants import DEVNET, UPDATE_ACCOUNT_CLASS_HASH
from spherre_deployment.exceptions import ArtifactNotFound, DeploymentConfigError
from spherre_deployment.params import ContractSpec, DeploymentParameters, WiringParameters
from spherre_deployment.registry import Registry


@pytest.fixture
def registry(deployments_dir):
    return Registry(DEVNET, directory=deployments_dir)


def test_default_params(params):
    assert params.network == DEVNET
    assert params.contracts == [
        ContractSpec("Spherre", "Spherre"),
        ContractSpec("SpherreAccount", "SpherreAccount"),
    ]
    assert params.wiring == [
        WiringParameters("Spherre", "SpherreAccount", UPDATE_ACCOUNT_CLASS_HASH)
    ]


def test_resolve_default_params(params, context, registry):
    spherre_args = params.resolve("Spherre", context, registry)
    assert list(spherre_args.items()) == [("owner", context.acting_identity)]

    account_args = params.resolve("SpherreAccount", context, registry)
    assert list(account_args) == [
        "deployer",
        "owner",
        "name",
        "description",
        "members",
        "threshold",
    ]
    assert account_args["threshold"] == 2
    members = account_args["members"]
    assert members[0] == context.acting_identity
    assert members[1] != members[2]
    assert all(int(member, 16) < 2**251 for member in members)


def test_random_addresses_differ_between_resolutions(params, context, registry):
    first = params.resolve("SpherreAccount", context, registry)["members"]
    second = params.resolve("SpherreAccount", context, registry)["members"]
    assert first[1:] != second[1:]


def test_contract_without_constructor(write_params, context, registry):
    params = DeploymentParameters.from_yaml(write_params("contracts:\n  - Spherre\n"))
    assert params.network is None
    assert params.wiring == []
    assert params.resolve("Spherre", context, registry) == {}


def test_alias(write_params):
    params = DeploymentParameters.from_yaml(
        write_params(
            """
contracts:
  - SpherreAccount:
      alias: AccountTemplate
wiring:
  - contract: AccountTemplate
    dependency: AccountTemplate
"""
        )
    )
    assert params.contracts == [ContractSpec("SpherreAccount", "AccountTemplate")]


def test_unresolved_contract_reference(write_params, context, registry):
    params = DeploymentParameters.from_yaml(
        write_params(
            """
contracts:
  - Token
  - Spherre:
      constructor:
        owner: $Token
"""
        )
    )
    # Token is not recorded yet
    with pytest.raises(ArtifactNotFound):
        params.resolve("Spherre", context, registry)


@pytest.mark.parametrize(
    "text",
    [
        # no contracts
        "deployment:\n  network: devnet\n",
        # unknown constant
        "contracts:\n  - Spherre:\n      constructor:\n        owner: $OWNER\n",
        # references a contract deployed later
        "contracts:\n  - Spherre:\n      constructor:\n        owner: $Token\n  - Token\n",
        # unknown network
        "deployment:\n  network: goerli\ncontracts:\n  - Spherre\n",
        # wiring references an unknown contract
        "contracts:\n  - Spherre\nwiring:\n  - contract: Spherre\n    dependency: Nope\n",
        # malformed wiring entry
        "contracts:\n  - Spherre\nwiring:\n  - contract: Spherre\n    target: Spherre\n",
        # recorded twice
        "contracts:\n  - Spherre\n  - Spherre\n",
        # malformed contract entry
        "contracts:\n  - Spherre: 1\n",
        # not a mapping
        "- Spherre\n",
    ],
)
def test_invalid_params(write_params, text):
    with pytest.raises(DeploymentConfigError):
        DeploymentParameters.from_yaml(write_params(text))
