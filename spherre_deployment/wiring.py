from pathlib import Path

from spherre_deployment.constants import DEPLOYMENTS_DIR, UPDATE_ACCOUNT_CLASS_HASH
from spherre_deployment.exceptions import MissingDependency
from spherre_deployment.registry import Registry


class WiringStep:
    """
    Links two deployed contracts by setting the class hash of `dependency`
    on the already deployed `contract`.

    The registry is read back from its latest export, so the step only ever sees
    deployments that were actually persisted.
    """

    def __init__(self, client, network: str, directory: Path = DEPLOYMENTS_DIR):
        self.client = client
        self.network = network
        self.directory = directory

    async def wire(
        self, contract: str, dependency: str, entrypoint: str = UPDATE_ACCOUNT_CLASS_HASH
    ) -> str:
        registry = Registry.load(network=self.network, directory=self.directory)
        for name in (contract, dependency):
            if name not in registry:
                raise MissingDependency(name)

        dependent_artifact = registry.get(contract)
        dependency_artifact = registry.get(dependency)
        return await self.client.invoke(
            dependent_artifact.address, entrypoint, [dependency_artifact.class_hash]
        )
