from typing import NamedTuple


class RunContext(NamedTuple):
    """The network and acting identity shared by every step of a deployment run."""

    network: str
    acting_identity: str  # hex address of the deployer account
