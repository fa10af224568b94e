from pathlib import Path

import click

from spherre_deployment.constants import (
    DEFAULT_PARAMS_FILEPATH,
    DEPLOYMENTS_DIR,
    SCARB_PACKAGE,
    SCARB_TARGET_DIR,
    SUPPORTED_NETWORKS,
)
from spherre_deployment.types import MinInt

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Deployment params YAML file.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=DEFAULT_PARAMS_FILEPATH,
    show_default=True,
)

network_option = click.option(
    "--network",
    "-n",
    help="Starknet network; overrides the network of the params file.",
    type=click.Choice(SUPPORTED_NETWORKS),
    required=False,
)

artifacts_option = click.option(
    "--artifacts",
    "artifacts_dir",
    help="Directory of the compiled Scarb artifacts.",
    type=click.Path(file_okay=False, path_type=Path),
    default=SCARB_TARGET_DIR,
    show_default=True,
)

package_option = click.option(
    "--package",
    help="Scarb package name prefixing the artifact filenames.",
    default=SCARB_PACKAGE,
    show_default=True,
)

deployments_dir_option = click.option(
    "--deployments-dir",
    help="Directory holding the per-network registry files.",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEPLOYMENTS_DIR,
    show_default=True,
)

reset_option = click.option(
    "--reset",
    help="Start from an empty registry instead of the latest export.",
    is_flag=True,
    default=False,
)

immediate_option = click.option(
    "--immediate",
    help="Execute each deploy call as soon as it is built instead of batching them.",
    is_flag=True,
    default=False,
)

flush_retries_option = click.option(
    "--flush-retries",
    help="Number of times a failed batch (or, with --immediate, deploy call) is resubmitted.",
    type=MinInt(0),
    default=0,
    show_default=True,
)

interactive_option = click.option(
    "--interactive",
    "-i",
    help="Confirm the resolved constructor parameters of every contract.",
    is_flag=True,
    default=False,
)
