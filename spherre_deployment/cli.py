import asyncio

import click

from spherre_deployment.chain import ArtifactSource, StarknetChainClient
from spherre_deployment.context import RunContext
from spherre_deployment.exceptions import DeploymentConfigError
from spherre_deployment.options import (
    artifacts_option,
    deployments_dir_option,
    flush_retries_option,
    immediate_option,
    interactive_option,
    network_option,
    package_option,
    params_option,
    reset_option,
)
from spherre_deployment.orchestrator import Orchestrator, run_deployment
from spherre_deployment.params import DeploymentParameters


def _print_deployment_info(context: RunContext, params: DeploymentParameters, orchestrator):
    print(
        f"Account: {context.acting_identity}",
        f"Params: {params.path}",
        f"Registry: {orchestrator.directory}",
        f"Network: {context.network}",
        f"Batched: {orchestrator.batched}",
        sep="\n",
    )


@click.command()
@params_option
@network_option
@artifacts_option
@package_option
@deployments_dir_option
@reset_option
@immediate_option
@flush_retries_option
@interactive_option
def cli(
    params_filepath,
    network,
    artifacts_dir,
    package,
    deployments_dir,
    reset,
    immediate,
    flush_retries,
    interactive,
):
    """Deploy the Spherre contracts and wire them together."""
    try:
        params = DeploymentParameters.from_yaml(filepath=params_filepath)
    except DeploymentConfigError as e:
        raise click.ClickException(str(e))
    network = network or params.network
    if not network:
        raise click.UsageError("No network given on the command line or in the params file.")

    artifacts = ArtifactSource(target_dir=artifacts_dir, package=package)
    try:
        client = StarknetChainClient.from_env(network=network, artifacts=artifacts)
    except ValueError as e:
        raise click.ClickException(str(e))

    context = RunContext(network=network, acting_identity=client.address)
    orchestrator = Orchestrator(
        context=context,
        client=client,
        params=params,
        directory=deployments_dir,
        reset=reset,
        batched=not immediate,
        flush_retries=flush_retries,
        interactive=interactive,
    )
    _print_deployment_info(context, params, orchestrator)

    exit_code = asyncio.run(run_deployment(orchestrator))
    raise SystemExit(exit_code)


if __name__ == "__main__":
    cli()
