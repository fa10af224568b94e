from collections import OrderedDict

import pytest

from spherre_deployment.calls import PendingCall
from spherre_deployment.chain import ChainClient
from spherre_deployment.constants import DEFAULT_PARAMS_FILEPATH, DEVNET
from spherre_deployment.context import RunContext
from spherre_deployment.exceptions import ChainClientError, UnknownContract
from spherre_deployment.params import DeploymentParameters

DEPLOYER_ADDRESS = "0x64b48806902a367c8598f4f95c305e8c1a1acba5f082d294a43793113115691"
UDC_ADDRESS = "0x41a78e741e5af2fec34b695679bc6891742439f7afb8484ecd7766661ad02bf"

CLASS_HASHES = {
    "Spherre": "0x5e1",
    "SpherreAccount": "0xacc",
    "Token": "0x70c",
}


class FakeChainClient(ChainClient):
    """In-memory chain client recording every chain interaction."""

    def __init__(self, address=DEPLOYER_ADDRESS):
        self.address = address
        self.calls = list()
        self.declared = set()
        self.failing_declarations = set()
        self.failing_deployments = set()
        self.batch_failures = 0
        self.invoke_failures = 0
        self._deployed = 0

    @property
    def chain_calls(self):
        """Only the calls that mutate chain state."""
        return [c for c in self.calls if c[0] in ("declare", "execute_batch", "invoke")]

    async def declare(self, contract_name):
        if contract_name not in CLASS_HASHES:
            raise UnknownContract(contract_name)
        if contract_name in self.failing_declarations:
            raise ChainClientError("declare rejected")
        self.calls.append(("declare", contract_name))
        self.declared.add(contract_name)
        return CLASS_HASHES[contract_name]

    async def deploy_call(self, class_hash, contract_name, constructor_args):
        if contract_name in self.failing_deployments:
            raise ChainClientError("invalid constructor calldata")
        self._deployed += 1
        self.calls.append(("deploy_call", contract_name))
        args = list(OrderedDict(constructor_args).values())
        return PendingCall(
            target_address=UDC_ADDRESS,
            entrypoint="deployContract",
            calldata=[class_hash, self._deployed, 0, len(args), *args],
            deploys=hex(0xD000 + self._deployed),
        )

    async def execute_batch(self, calls):
        self.calls.append(("execute_batch", list(calls)))
        if self.batch_failures:
            self.batch_failures -= 1
            raise ChainClientError("transaction reverted")
        return hex(0xB000 + len(self.calls))

    async def invoke(self, address, entrypoint, calldata):
        self.calls.append(("invoke", (address, entrypoint, list(calldata))))
        if self.invoke_failures:
            self.invoke_failures -= 1
            raise ChainClientError("invoke reverted")
        return hex(0x1000 + len(self.calls))


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def context():
    return RunContext(network=DEVNET, acting_identity=DEPLOYER_ADDRESS)


@pytest.fixture
def deployments_dir(tmp_path):
    return tmp_path / "deployments"


@pytest.fixture
def params():
    return DeploymentParameters.from_yaml(DEFAULT_PARAMS_FILEPATH)


@pytest.fixture
def write_params(tmp_path):
    def _write(text):
        filepath = tmp_path / "params.yml"
        filepath.write_text(text)
        return filepath

    return _write
