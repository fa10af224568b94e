import json
import os
import shutil
import time
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, Iterator, List, NamedTuple, Optional

from spherre_deployment.constants import DEPLOYMENTS_DIR, LATEST_REGISTRY_SUFFIX
from spherre_deployment.exceptions import ArtifactNotFound, CorruptRegistry

ContractName = str

STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}

REGISTRY_FIELDS = ("name", "address", "class_hash", "constructor_args")


class DeploymentArtifact(NamedTuple):
    """Represents a single deployed contract in a network registry."""

    name: ContractName
    address: str
    class_hash: str
    constructor_args: List[Any]


def registry_filepath(network: str, directory: Path = DEPLOYMENTS_DIR) -> Path:
    return Path(directory) / f"{network}{LATEST_REGISTRY_SUFFIX}"


def _archive_filepath(filepath: Path) -> Path:
    timestamp = int(time.time() * 1000)
    archive_name = filepath.name.replace(LATEST_REGISTRY_SUFFIX, f"_{timestamp}.json")
    archive_filepath = filepath.with_name(archive_name)
    # exports within the same millisecond get a counter suffix
    counter = 1
    while archive_filepath.exists():
        archive_name = filepath.name.replace(LATEST_REGISTRY_SUFFIX, f"_{timestamp}_{counter}.json")
        archive_filepath = filepath.with_name(archive_name)
        counter += 1
    return archive_filepath


def read_registry(filepath: Path) -> "OrderedDict[ContractName, DeploymentArtifact]":
    try:
        with open(filepath, "r", encoding="utf-8") as file:
            data = json.load(file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorruptRegistry(f"Registry at {filepath} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CorruptRegistry(f"Registry at {filepath} must be a mapping of contract names.")

    artifacts = OrderedDict()
    for contract_name, entry in data.items():
        if not isinstance(entry, dict):
            raise CorruptRegistry(f"Malformed registry entry for {contract_name} in {filepath}.")
        missing = [field for field in REGISTRY_FIELDS if field not in entry]
        if missing:
            raise CorruptRegistry(
                f"Registry entry for {contract_name} in {filepath} "
                f"is missing field(s): {', '.join(missing)}"
            )
        if entry["name"] != contract_name:
            raise CorruptRegistry(
                f"Registry key '{contract_name}' does not match entry name '{entry['name']}'."
            )
        if not isinstance(entry["address"], str) or not isinstance(entry["class_hash"], str):
            raise CorruptRegistry(
                f"Registry entry for {contract_name} in {filepath} has a non-string address "
                "or class hash."
            )
        if not isinstance(entry["constructor_args"], list):
            raise CorruptRegistry(
                f"Registry entry for {contract_name} in {filepath} has malformed constructor args."
            )
        artifacts[contract_name] = DeploymentArtifact(
            name=entry["name"],
            address=entry["address"],
            class_hash=entry["class_hash"],
            constructor_args=list(entry["constructor_args"]),
        )
    return artifacts


def write_registry(
    artifacts: List[DeploymentArtifact], filepath: Path, silent: bool = False
) -> Path:
    """
    Writes a registry file, replacing any prior one.
    The data is written to a temporary sibling first and then renamed over the
    target, so readers never observe a partially written registry.
    """
    # Sort registry entries to enforce common order
    artifacts = sorted(artifacts, key=lambda artifact: artifact.name)
    data = OrderedDict()
    for artifact in artifacts:
        data[artifact.name] = {
            "name": artifact.name,
            "address": artifact.address,
            "class_hash": artifact.class_hash,
            "constructor_args": list(artifact.constructor_args),
        }

    # Create the parent directory if it does not exist
    filepath.parent.mkdir(parents=True, exist_ok=True)

    if filepath.exists():
        archive_filepath = _archive_filepath(filepath)
        shutil.copy(filepath, archive_filepath)
        if not silent:
            print(f"Replacing existing registry at {filepath} (previous copy: {archive_filepath}).")
    elif not silent:
        print(f"Creating new registry at {filepath}.")

    temp_filepath = filepath.with_suffix(".temp.json")
    try:
        with open(temp_filepath, "w") as file:
            json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
        os.replace(temp_filepath, filepath)
    finally:
        if temp_filepath.exists():
            temp_filepath.unlink()

    return filepath


class Registry:
    """The deployment artifacts of one network, keyed by contract name."""

    def __init__(
        self,
        network: str,
        directory: Path = DEPLOYMENTS_DIR,
        artifacts: Optional[Dict[ContractName, DeploymentArtifact]] = None,
    ):
        self.network = network
        self.filepath = registry_filepath(network=network, directory=directory)
        self._artifacts = OrderedDict(artifacts or {})

    @classmethod
    def load(cls, network: str, directory: Path = DEPLOYMENTS_DIR) -> "Registry":
        """Loads the latest export for a network, or returns an empty registry if there is none."""
        filepath = registry_filepath(network=network, directory=directory)
        if not filepath.exists():
            return cls(network=network, directory=directory)
        artifacts = read_registry(filepath)
        return cls(network=network, directory=directory, artifacts=artifacts)

    @property
    def exists(self) -> bool:
        return self.filepath.exists()

    def record(self, artifact: DeploymentArtifact) -> None:
        # last write wins; the prior entry is replaced as a whole
        self._artifacts[artifact.name] = artifact

    def get(self, name: ContractName) -> DeploymentArtifact:
        try:
            return self._artifacts[name]
        except KeyError:
            raise ArtifactNotFound(name)

    def export(self) -> Path:
        """Persists every artifact of this registry, replacing the prior export."""
        filepath = write_registry(artifacts=list(self), filepath=self.filepath)
        print(f"(i) Registry written to {filepath}!")
        return filepath

    def as_dict(self) -> Dict[ContractName, DeploymentArtifact]:
        return dict(self._artifacts)

    def __contains__(self, name: object) -> bool:
        return name in self._artifacts

    def __iter__(self) -> Iterator[DeploymentArtifact]:
        return iter(self._artifacts.values())

    def __len__(self) -> int:
        return len(self._artifacts)
