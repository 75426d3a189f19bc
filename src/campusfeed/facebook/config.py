"""
Configuration management for Facebook content sources.

Handles loading of the facebook_sources.yaml file.
"""

import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional


# Organization pages scraped when no sources file is present
DEFAULT_SOURCES: List[Dict[str, Any]] = [
    {"source_id": "DLSU.Manila.100", "display_name": "De La Salle University", "enabled": True},
    {"source_id": "ArchersNetwork", "display_name": "Archers Network", "enabled": True},
    {"source_id": "dlsu.usg", "display_name": "DLSU USG", "enabled": True},
    {"source_id": "dlsu.englicom", "display_name": "Englicom", "enabled": True},
    {"source_id": "InvestorsSocietyDLSU", "display_name": "Investor's Society", "enabled": True},
]


def load_sources(path: str) -> Dict[str, Any]:
    """
    Load Facebook sources from YAML file.

    Args:
        path: Path to facebook_sources.yaml

    Returns:
        Dictionary containing sources configuration with keys:
        - sources: List of source dictionaries

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        ValueError: If required fields are missing
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        raise ValueError(f"Configuration file is empty: {path}")

    if "sources" not in data:
        raise ValueError("Missing required 'sources' key in configuration")

    if not isinstance(data["sources"], list):
        raise ValueError("'sources' must be a list")

    seen = set()
    for idx, source in enumerate(data["sources"]):
        if not isinstance(source, dict):
            raise ValueError(f"Source at index {idx} is not a dictionary")

        for field in ("source_id", "display_name"):
            if not source.get(field):
                raise ValueError(
                    f"Source at index {idx} missing required field: {field}"
                )

        # YAML may read numeric page ids as ints
        source["source_id"] = str(source["source_id"])

        if source["source_id"] in seen:
            raise ValueError(f"Duplicate source_id: {source['source_id']}")
        seen.add(source["source_id"])

    return data


def get_enabled_sources(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Filter sources to only those that are enabled.

    Args:
        data: Configuration dictionary from load_sources()

    Returns:
        List of source dictionaries where enabled is true (default)
    """
    return [
        source
        for source in data.get("sources", [])
        if source.get("enabled", True)
    ]


def find_source_by_id(sources: List[Dict[str, Any]], source_id: str) -> Optional[Dict[str, Any]]:
    """
    Find a specific source by its source_id.

    Returns:
        Source dictionary if found, None otherwise
    """
    for source in sources:
        if source.get("source_id") == source_id:
            return source

    return None


def resolve_sources(path: Optional[str]) -> List[Dict[str, Any]]:
    """
    Enabled sources from the YAML file, or DEFAULT_SOURCES when it is missing.

    A file that exists but is invalid still raises.
    """
    if path and Path(path).exists():
        return get_enabled_sources(load_sources(path))

    return [dict(source) for source in DEFAULT_SOURCES]
