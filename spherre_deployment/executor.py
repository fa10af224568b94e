from collections import OrderedDict
from typing import Any, Optional

from spherre_deployment.calls import CallAccumulator, flush_with_retries
from spherre_deployment.context import RunContext
from spherre_deployment.exceptions import (
    BatchExecutionFailed,
    ChainClientError,
    DeclarationFailed,
    DeploymentFailed,
)
from spherre_deployment.registry import DeploymentArtifact, Registry


class DeploymentExecutor:
    """
    Declares and deploys one contract at a time.

    Building a deploy call is kept apart from submitting it: in batched mode the
    call is only enqueued and the returned artifact becomes valid once the
    accumulator is flushed, which lets several deployments share one transaction.
    """

    def __init__(
        self,
        context: RunContext,
        client,
        accumulator: CallAccumulator,
        registry: Registry,
        batched: bool = True,
        flush_retries: int = 0,
    ):
        self.context = context
        self.client = client
        self.accumulator = accumulator
        self.registry = registry
        self.batched = batched
        self.flush_retries = flush_retries

    async def deploy(
        self,
        contract_name: str,
        constructor_args: "OrderedDict[str, Any]",
        registry_name: Optional[str] = None,
    ) -> DeploymentArtifact:
        registry_name = registry_name or contract_name

        try:
            class_hash = await self.client.declare(contract_name)
        except ChainClientError as e:
            raise DeclarationFailed(contract_name, cause=e) from e

        try:
            call = await self.client.deploy_call(class_hash, contract_name, constructor_args)
        except ChainClientError as e:
            raise DeploymentFailed(contract_name, cause=e) from e

        self.accumulator.enqueue(call)
        if not self.batched:
            try:
                await flush_with_retries(self.accumulator, retries=self.flush_retries)
            except BatchExecutionFailed as e:
                raise DeploymentFailed(contract_name, cause=e.cause) from e

        artifact = DeploymentArtifact(
            name=registry_name,
            address=call.deploys,
            class_hash=class_hash,
            constructor_args=list(constructor_args.values()),
        )
        self.registry.record(artifact)
        print(f"(i) {registry_name} address: {artifact.address}")
        return artifact
