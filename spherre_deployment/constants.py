from pathlib import Path

import spherre_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(spherre_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
DEFAULT_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "spherre.yml"

# relative to the directory the deployment is run from
DEPLOYMENTS_DIR = Path("deployments")
SCARB_TARGET_DIR = Path("target") / "dev"
SCARB_PACKAGE = "spherre"

LATEST_REGISTRY_SUFFIX = "_latest.json"

#
# Networks
#

DEVNET = "devnet"
SEPOLIA = "sepolia"
MAINNET = "mainnet"

SUPPORTED_NETWORKS = [DEVNET, SEPOLIA, MAINNET]

RPC_URL_ENVVAR = "RPC_URL_{network}"
ACCOUNT_ADDRESS_ENVVAR = "ACCOUNT_ADDRESS_{network}"
PRIVATE_KEY_ENVVAR = "PRIVATE_KEY_{network}"

# starknet-devnet --seed 0, first predeployed account
DEVNET_RPC_URL = "http://127.0.0.1:5050/rpc"
DEVNET_ACCOUNT_ADDRESS = "0x064b48806902a367c8598f4f95c305e8c1a1acba5f082d294a43793113115691"
DEVNET_PRIVATE_KEY = "0x0000000000000000000000000000000071d7bb07b9a64f6f78ac4c816aff4da9"

#
# Contracts
#

UPDATE_ACCOUNT_CLASS_HASH = "update_account_class_hash"
