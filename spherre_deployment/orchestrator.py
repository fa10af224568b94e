from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

import click

from spherre_deployment.calls import CallAccumulator, flush_with_retries
from spherre_deployment.confirm import _confirm_resolution
from spherre_deployment.constants import DEPLOYMENTS_DIR
from spherre_deployment.context import RunContext
from spherre_deployment.executor import DeploymentExecutor
from spherre_deployment.params import DeploymentParameters
from spherre_deployment.registry import Registry
from spherre_deployment.wiring import WiringStep

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class RunState(Enum):
    IDLE = "idle"
    DEPLOYING = "deploying"
    BATCHING = "batching"
    EXPORTING = "exporting"
    WIRING = "wiring"
    DONE = "done"
    ABORTED = "aborted"


TERMINAL_STATES = (RunState.DONE, RunState.ABORTED)


class Orchestrator:
    """
    Drives a deployment run from start to finish:
    deploy every contract, execute the accumulated calls, export the registry,
    then wire the deployed contracts together.

    The run is strictly sequential. Any failure moves the run to ABORTED and is
    re-raised; nothing already submitted to the chain is rolled back.
    """

    def __init__(
        self,
        context: RunContext,
        client,
        params: DeploymentParameters,
        directory: Path = DEPLOYMENTS_DIR,
        reset: bool = False,
        batched: bool = True,
        flush_retries: int = 0,
        interactive: bool = False,
    ):
        self.context = context
        self.client = client
        self.params = params
        self.directory = directory
        self.reset = reset
        self.batched = batched
        self.flush_retries = flush_retries
        self.interactive = interactive

        self.registry: Optional[Registry] = None
        self.state = RunState.IDLE
        self.transitions: List[Tuple[RunState, Optional[str]]] = [(RunState.IDLE, None)]

    def _transition(self, state: RunState, detail: Optional[str] = None) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Run already finished in state {self.state.value}.")
        self.state = state
        self.transitions.append((state, detail))

    def _load_registry(self) -> Registry:
        if self.reset:
            print(f"(i) Starting from an empty registry for {self.context.network}.")
            return Registry(network=self.context.network, directory=self.directory)
        return Registry.load(network=self.context.network, directory=self.directory)

    async def _deploy_contracts(self, executor: DeploymentExecutor) -> None:
        for spec in self.params.contracts:
            self._transition(RunState.DEPLOYING, spec.registry_name)
            click.secho(f"Deploying {spec.contract_name} contract...", fg="green")
            constructor_args = self.params.resolve(
                spec.registry_name, context=self.context, registry=self.registry
            )
            if self.interactive:
                _confirm_resolution(constructor_args, spec.registry_name)
            await executor.deploy(
                spec.contract_name, constructor_args, registry_name=spec.registry_name
            )

    async def _wire_contracts(self) -> None:
        wiring_step = WiringStep(
            client=self.client, network=self.context.network, directory=self.directory
        )
        for wiring in self.params.wiring:
            click.secho(
                f"Adding {wiring.dependency} classHash to {wiring.contract} contract...",
                fg="yellow",
            )
            await wiring_step.wire(wiring.contract, wiring.dependency, wiring.entrypoint)
            click.secho(
                f"{wiring.dependency} classHash added to {wiring.contract} contract successfully!",
                fg="green",
            )

    async def run(self) -> Registry:
        try:
            self.registry = self._load_registry()
            accumulator = CallAccumulator(context=self.context, client=self.client)
            executor = DeploymentExecutor(
                context=self.context,
                client=self.client,
                accumulator=accumulator,
                registry=self.registry,
                batched=self.batched,
                flush_retries=self.flush_retries,
            )
            await self._deploy_contracts(executor)

            self._transition(RunState.BATCHING)
            result = await flush_with_retries(accumulator, retries=self.flush_retries)
            if result.transaction_hash:
                print(f"(i) Deploy calls executed in transaction {result.transaction_hash}")

            self._transition(RunState.EXPORTING)
            self.registry.export()

            self._transition(RunState.WIRING)
            await self._wire_contracts()
        except Exception:
            self._transition(RunState.ABORTED)
            raise

        self._transition(RunState.DONE)
        click.secho("All Setup Done!", fg="green")
        return self.registry


async def run_deployment(orchestrator: Orchestrator) -> int:
    """Runs a deployment and translates its outcome into a process exit code."""
    try:
        await orchestrator.run()
    except Exception as e:
        click.secho(f"Deployment aborted: {e}", fg="red", err=True)
        return EXIT_FAILURE
    return EXIT_SUCCESS
