import json
import os
import secrets
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, Tuple

from starknet_py.common import create_casm_class, create_sierra_compiled_contract
from starknet_py.contract import Contract
from starknet_py.hash.casm_class_hash import compute_casm_class_hash
from starknet_py.hash.selector import get_selector_from_name
from starknet_py.hash.sierra_class_hash import compute_sierra_class_hash
from starknet_py.net.account.account import Account
from starknet_py.net.client_errors import ClientError
from starknet_py.net.client_models import Call
from starknet_py.net.full_node_client import FullNodeClient
from starknet_py.net.models import StarknetChainId
from starknet_py.net.signer.stark_curve_signer import KeyPair
from starknet_py.net.udc_deployer.deployer import Deployer
from starknet_py.transaction_errors import TransactionFailedError

from spherre_deployment.calls import PendingCall
from spherre_deployment.constants import (
    ACCOUNT_ADDRESS_ENVVAR,
    DEVNET,
    DEVNET_ACCOUNT_ADDRESS,
    DEVNET_PRIVATE_KEY,
    DEVNET_RPC_URL,
    MAINNET,
    PRIVATE_KEY_ENVVAR,
    RPC_URL_ENVVAR,
    SCARB_PACKAGE,
    SCARB_TARGET_DIR,
)
from spherre_deployment.exceptions import ChainClientError, UnknownContract

UDC_ENTRYPOINT = "deployContract"

# contract addresses must be below 2**251 - 256
MAX_ADDRESS = 2**251 - 256


def random_address() -> str:
    return hex(secrets.randbelow(MAX_ADDRESS))


def to_felt(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 0)
    raise ValueError(f"Cannot convert {value!r} to a felt.")


def _to_felt_args(value: Any) -> Any:
    """Converts hex strings into ints, leaving other values to the ABI serializer."""
    if isinstance(value, dict):
        return OrderedDict((name, _to_felt_args(v)) for name, v in value.items())
    if isinstance(value, list):
        return [_to_felt_args(v) for v in value]
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return value


class ArtifactSource:
    """Loads compiled Scarb artifacts (sierra + casm) by contract name."""

    SIERRA_SUFFIX = ".contract_class.json"
    CASM_SUFFIX = ".compiled_contract_class.json"

    def __init__(self, target_dir: Path = SCARB_TARGET_DIR, package: str = SCARB_PACKAGE):
        self.target_dir = Path(target_dir)
        self.package = package

    def _filepath(self, contract_name: str, suffix: str) -> Path:
        return self.target_dir / f"{self.package}_{contract_name}{suffix}"

    def load(self, contract_name: str) -> Tuple[str, str]:
        """Returns the sierra and casm definitions of a contract."""
        sierra_filepath = self._filepath(contract_name, self.SIERRA_SUFFIX)
        casm_filepath = self._filepath(contract_name, self.CASM_SUFFIX)
        if not sierra_filepath.exists() or not casm_filepath.exists():
            raise UnknownContract(contract_name)
        return sierra_filepath.read_text(), casm_filepath.read_text()

    def abi(self, contract_name: str) -> List[dict]:
        sierra, _ = self.load(contract_name)
        abi = json.loads(sierra)["abi"]
        if isinstance(abi, str):
            abi = json.loads(abi)
        return abi


class ChainClient(ABC):
    """The chain operations a deployment run depends on."""

    @abstractmethod
    async def declare(self, contract_name: str) -> str:
        """Declares a contract class, if not declared yet, and returns its class hash."""
        raise NotImplementedError

    @abstractmethod
    async def deploy_call(
        self, class_hash: str, contract_name: str, constructor_args: "OrderedDict[str, Any]"
    ) -> PendingCall:
        """Builds a deploy-type call carrying the precomputed contract address."""
        raise NotImplementedError

    @abstractmethod
    async def execute_batch(self, calls: List[PendingCall]) -> str:
        """Executes the calls, in order, as a single transaction."""
        raise NotImplementedError

    @abstractmethod
    async def invoke(self, address: str, entrypoint: str, calldata: List[Any]) -> str:
        raise NotImplementedError


class StarknetChainClient(ChainClient):
    """
    Starknet chain client backed by starknet.py.
    Deployments go through the Universal Deployer Contract so the resulting
    address is known before the deploy call is executed.
    """

    def __init__(self, account: Account, artifacts: ArtifactSource):
        self.account = account
        self.client = account.client
        self.artifacts = artifacts

    @classmethod
    def from_env(cls, network: str, artifacts: ArtifactSource) -> "StarknetChainClient":
        envvar_suffix = network.upper()
        rpc_url = os.environ.get(RPC_URL_ENVVAR.format(network=envvar_suffix))
        address = os.environ.get(ACCOUNT_ADDRESS_ENVVAR.format(network=envvar_suffix))
        private_key = os.environ.get(PRIVATE_KEY_ENVVAR.format(network=envvar_suffix))
        if network == DEVNET:
            rpc_url = rpc_url or DEVNET_RPC_URL
            address = address or DEVNET_ACCOUNT_ADDRESS
            private_key = private_key or DEVNET_PRIVATE_KEY
        if not (rpc_url and address and private_key):
            raise ValueError(
                "There are missing environment variables. "
                f"Please set {RPC_URL_ENVVAR.format(network=envvar_suffix)}, "
                f"{ACCOUNT_ADDRESS_ENVVAR.format(network=envvar_suffix)} and "
                f"{PRIVATE_KEY_ENVVAR.format(network=envvar_suffix)}."
            )

        chain = StarknetChainId.MAINNET if network == MAINNET else StarknetChainId.SEPOLIA
        account = Account(
            client=FullNodeClient(node_url=rpc_url),
            address=to_felt(address),
            key_pair=KeyPair.from_private_key(to_felt(private_key)),
            chain=chain,
        )
        return cls(account=account, artifacts=artifacts)

    @property
    def address(self) -> str:
        return hex(self.account.address)

    async def _is_declared(self, class_hash: int) -> bool:
        try:
            await self.client.get_class_by_hash(class_hash)
        except ClientError:
            return False
        return True

    async def declare(self, contract_name: str) -> str:
        sierra, casm = self.artifacts.load(contract_name)
        class_hash = compute_sierra_class_hash(create_sierra_compiled_contract(sierra))
        if await self._is_declared(class_hash):
            print(f"(i) {contract_name} is already declared with class hash {hex(class_hash)}")
            return hex(class_hash)

        compiled_class_hash = compute_casm_class_hash(create_casm_class(casm))
        try:
            declare_result = await Contract.declare_v3(
                self.account,
                compiled_contract=sierra,
                compiled_class_hash=compiled_class_hash,
                auto_estimate=True,
            )
            await declare_result.wait_for_acceptance()
        except (ClientError, TransactionFailedError) as e:
            raise ChainClientError(str(e)) from e
        print(f"(i) Declared {contract_name} with class hash {hex(declare_result.class_hash)}")
        return hex(declare_result.class_hash)

    async def deploy_call(
        self, class_hash: str, contract_name: str, constructor_args: "OrderedDict[str, Any]"
    ) -> PendingCall:
        deployer = Deployer()
        try:
            deployment = deployer.create_contract_deployment(
                class_hash=to_felt(class_hash),
                abi=self.artifacts.abi(contract_name),
                calldata=_to_felt_args(constructor_args),
                cairo_version=1,
            )
        except (TypeError, ValueError) as e:
            message = f"Invalid constructor arguments for {contract_name}: {e}"
            raise ChainClientError(message) from e
        return PendingCall(
            target_address=hex(deployment.udc.to_addr),
            entrypoint=UDC_ENTRYPOINT,
            calldata=list(deployment.udc.calldata),
            deploys=hex(deployment.address),
        )

    @staticmethod
    def _to_call(call: PendingCall) -> Call:
        return Call(
            to_addr=to_felt(call.target_address),
            selector=get_selector_from_name(call.entrypoint),
            calldata=[to_felt(value) for value in call.calldata],
        )

    async def _execute(self, calls: List[Call]) -> str:
        try:
            response = await self.account.execute_v3(calls=calls, auto_estimate=True)
            await self.client.wait_for_tx(response.transaction_hash)
        except (ClientError, TransactionFailedError) as e:
            raise ChainClientError(str(e)) from e
        return hex(response.transaction_hash)

    async def execute_batch(self, calls: List[PendingCall]) -> str:
        return await self._execute([self._to_call(call) for call in calls])

    async def invoke(self, address: str, entrypoint: str, calldata: List[Any]) -> str:
        call = PendingCall(target_address=address, entrypoint=entrypoint, calldata=calldata)
        return await self._execute([self._to_call(call)])
