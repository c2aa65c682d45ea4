"""Read policies, traffic and simulator resources from files."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from netloom.core.models import PolicyDocuments
from netloom.core.models.errors import InvalidPolicyError, InvalidTrafficError, PolicyFileError
from netloom.k8s.converter import PolicyConverter
from netloom.matcher.traffic import Traffic
from netloom.simulator.resources import Resources

logger = logging.getLogger(__name__)

POLICY_FILE_SUFFIXES = (".yaml", ".yml", ".json")


def policy_files(path: str | Path) -> list[Path]:
    """The file itself, or every policy file below a directory in sorted order."""
    root = Path(path)
    if not root.exists():
        raise PolicyFileError(str(root), "no such file or directory")
    if root.is_file():
        return [root]
    files = []
    for dirpath, _, filenames in os.walk(root):
        for filename in filenames:
            if filename.endswith(POLICY_FILE_SUFFIXES):
                files.append(Path(dirpath) / filename)
    return sorted(files)


def load_documents(path: Path) -> list[Any]:
    """Every YAML document in a file; JSON is valid YAML."""
    try:
        with open(path, encoding="utf-8") as f:
            return [doc for doc in yaml.safe_load_all(f) if doc is not None]
    except (OSError, yaml.YAMLError) as e:
        raise PolicyFileError(str(path), e) from e


class PolicyDocumentReader:
    """Dispatch Kubernetes documents by kind into a PolicyDocuments set."""

    def __init__(self, converter: PolicyConverter | None = None):
        self.converter = converter or PolicyConverter()
        self.documents = PolicyDocuments()

    def add(self, obj: Any, source: str) -> int:
        """Add one document (or list); returns how many policies it contained."""
        if not isinstance(obj, dict):
            logger.debug(f"skipping non-object document in {source}")
            return 0
        kind = obj.get("kind", "")
        if kind in ("List", "NetworkPolicyList", "AdminNetworkPolicyList", "BaselineAdminNetworkPolicyList"):
            return sum(self.add(item, source) for item in obj.get("items") or [])
        if kind == "NetworkPolicy":
            self.documents.network_policies.append(self.converter.convert_network_policy(obj))
            return 1
        if kind == "AdminNetworkPolicy":
            self.documents.admin_network_policies.append(self.converter.convert_admin_network_policy(obj))
            return 1
        if kind == "BaselineAdminNetworkPolicy":
            banp = self.converter.convert_baseline_admin_network_policy(obj)
            if self.documents.baseline_admin_network_policy is not None:
                logger.warning(
                    f"multiple baseline admin network policies found, using {banp.name} from {source} "
                    f"instead of {self.documents.baseline_admin_network_policy.name}"
                )
            self.documents.baseline_admin_network_policy = banp
            return 1
        logger.debug(f"skipping document of kind {kind!r} in {source}")
        return 0


def read_policies_from_path(path: str | Path) -> PolicyDocuments:
    """Read every policy document under a file or directory."""
    reader = PolicyDocumentReader()
    for file in policy_files(path):
        count = 0
        for doc in load_documents(file):
            try:
                count += reader.add(doc, str(file))
            except InvalidPolicyError as e:
                raise PolicyFileError(str(file), e) from e
        if count == 0:
            logger.warning(f"no network policies found in {file}")
        else:
            logger.info(f"read {count} policies from {file}")
    return reader.documents


def read_traffic_from_path(path: str | Path) -> list[Traffic]:
    """Read a YAML or JSON list of traffic entries."""
    file = Path(path)
    docs = load_documents(file)
    entries: list[Any] = []
    for doc in docs:
        entries.extend(doc if isinstance(doc, list) else [doc])
    traffic = []
    for i, entry in enumerate(entries):
        try:
            traffic.append(Traffic.from_dict(entry))
        except InvalidTrafficError as e:
            raise InvalidTrafficError(f"{file}: entry {i}: {e}") from e
    return traffic


def read_resources_from_path(path: str | Path) -> Resources:
    """Read simulator namespaces and pods."""
    file = Path(path)
    docs = load_documents(file)
    if len(docs) != 1 or not isinstance(docs[0], dict):
        raise PolicyFileError(str(file), "expected a single mapping with namespaces and pods")
    return Resources.from_dict(docs[0], source=str(file))
