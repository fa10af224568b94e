import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, NamedTuple, Optional

from spherre_deployment.chain import random_address
from spherre_deployment.constants import SUPPORTED_NETWORKS, UPDATE_ACCOUNT_CLASS_HASH
from spherre_deployment.context import RunContext
from spherre_deployment.exceptions import DeploymentConfigError
from spherre_deployment.registry import Registry
from spherre_deployment.utils import _load_yaml

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_ALIAS_KEY = "alias"


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        constants: typing.Dict[str, Any] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.constants = constants or dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: RunContext, registry: Registry) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: RunContext, registry: Registry) -> Any:
        return context.acting_identity


class RandomAddress(Variable):
    RANDOM_INDICATOR = "random"

    @classmethod
    def is_random(cls, value: str) -> bool:
        return value == cls.RANDOM_INDICATOR

    def resolve(self, context: RunContext, registry: Registry) -> Any:
        # a fresh address for every occurrence
        return random_address()


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(
                f"Constant '{constant_name}' not found in deployment file."
            )

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, context: RunContext, registry: Registry) -> Any:
        return self.constant_value


class ContractName(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise DeploymentConfigError(f"Contract name {contract_name} not found")
        self.contract_name = contract_name

    def resolve(self, context: RunContext, registry: Registry) -> Any:
        """Resolves the address of a contract already recorded in the registry."""
        return registry.get(self.contract_name).address


def _resolve_param(value: Any, context: RunContext, registry: Registry) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context, registry) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context, registry)

    return value  # literally a value


def _resolve_params(
    parameters: OrderedDict, context: RunContext, registry: Registry
) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value, context, registry)

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif RandomAddress.is_random(variable):
        return RandomAddress()
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: OrderedDict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


class ContractSpec(NamedTuple):
    """A contract to deploy, in order, and the name it is recorded under."""

    contract_name: str
    registry_name: str


def _get_contract_specs(config: typing.Dict) -> List[ContractSpec]:
    contracts = config.get("contracts")
    if not contracts or not isinstance(contracts, list):
        raise DeploymentConfigError("Deployment params file missing 'contracts' field.")

    specs = list()
    for contract_info in contracts:
        if isinstance(contract_info, str):
            specs.append(ContractSpec(contract_name=contract_info, registry_name=contract_info))
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            if not isinstance(contract_data, dict):
                raise DeploymentConfigError(f"Malformed parameter config for {contract_name}.")
            registry_name = contract_data.get(CONTRACT_ALIAS_KEY, contract_name)
            specs.append(ContractSpec(contract_name=contract_name, registry_name=registry_name))
        else:
            raise DeploymentConfigError("Malformed deployment params YAML.")

    registry_names = [spec.registry_name for spec in specs]
    duplicates = {name for name in registry_names if registry_names.count(name) > 1}
    if duplicates:
        raise DeploymentConfigError(
            f"Contracts recorded more than once: {', '.join(sorted(duplicates))}"
        )
    return specs


class ConstructorParameters:
    """Represents the constructor parameters for a set of contracts."""

    def __init__(self, parameters: OrderedDict):
        self.parameters = parameters

    @classmethod
    def from_config(cls, config: typing.Dict) -> "ConstructorParameters":
        """Processes the constructor parameters of every contract in a config."""
        print("Processing contract constructor parameters...")
        contracts_config = OrderedDict()
        specs = _get_contract_specs(config)
        constants = config.get("constants")
        for position, contract_info in enumerate(config["contracts"]):
            spec = specs[position]
            # only contracts deployed earlier can be referenced
            earlier_names = [s.registry_name for s in specs[:position]]
            parameter_values = OrderedDict()
            if isinstance(contract_info, dict):
                contract_data = contract_info[spec.contract_name] or dict()
                parameter_values = cls._process_parameters(
                    constants, contract_data, spec.registry_name, earlier_names
                )
            contracts_config[spec.registry_name] = parameter_values

        return cls(parameters=contracts_config)

    @classmethod
    def _process_parameters(cls, constants, contract_data, contract_name, contract_names):
        parameter_values = OrderedDict()
        if CONTRACT_CONSTRUCTOR_PARAMETER_KEY in contract_data:
            raw_values = contract_data[CONTRACT_CONSTRUCTOR_PARAMETER_KEY] or dict()
            if not isinstance(raw_values, dict):
                raise DeploymentConfigError(
                    f"Malformed constructor parameter config for {contract_name}."
                )
            parameter_values = _process_raw_values(
                OrderedDict(raw_values),
                VariableContext(
                    contract_names=contract_names, constants=constants, contract_name=contract_name
                ),
            )
        return parameter_values

    def resolve(self, contract_name: str, context: RunContext, registry: Registry) -> OrderedDict:
        """Resolves the constructor parameters for a single contract."""
        return _resolve_params(self.parameters[contract_name], context, registry)


class WiringParameters(NamedTuple):
    """A post-deployment link: `dependency`'s class hash is set on `contract`."""

    contract: str
    dependency: str
    entrypoint: str = UPDATE_ACCOUNT_CLASS_HASH

    @classmethod
    def from_config(
        cls, config: typing.Dict, specs: List[ContractSpec]
    ) -> List["WiringParameters"]:
        registry_names = [spec.registry_name for spec in specs]
        wirings = list()
        for wiring_info in config.get("wiring") or list():
            if not isinstance(wiring_info, dict):
                raise DeploymentConfigError("Malformed wiring YAML.")
            try:
                wiring = cls(**wiring_info)
            except TypeError as e:
                raise DeploymentConfigError(f"Malformed wiring YAML: {e}") from e
            for name in (wiring.contract, wiring.dependency):
                if name not in registry_names:
                    raise DeploymentConfigError(f"Wiring references unknown contract {name}.")
            wirings.append(wiring)
        return wirings


class DeploymentParameters:
    """The contracts to deploy, their constructor parameters, and the wiring between them."""

    def __init__(self, config: typing.Dict, path: Optional[Path] = None):
        self.path = path
        self.config = config
        self.network = self._get_network(config)
        self.contracts = _get_contract_specs(config)
        self.constructor_parameters = ConstructorParameters.from_config(config)
        self.wiring = WiringParameters.from_config(config, self.contracts)

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentParameters":
        config = _load_yaml(filepath)
        if not isinstance(config, dict):
            raise DeploymentConfigError(f"Malformed deployment params file {filepath}.")
        return cls(config=config, path=filepath)

    @staticmethod
    def _get_network(config: typing.Dict) -> Optional[str]:
        deployment = config.get("deployment") or dict()
        network = deployment.get("network")
        if network is not None and network not in SUPPORTED_NETWORKS:
            raise DeploymentConfigError(
                f"Unsupported network '{network}', expected one of {SUPPORTED_NETWORKS}."
            )
        return network

    def resolve(self, contract_name: str, context: RunContext, registry: Registry) -> OrderedDict:
        return self.constructor_parameters.resolve(contract_name, context, registry)
