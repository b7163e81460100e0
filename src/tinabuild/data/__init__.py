"""
Files shipped inside the tinabuild wheel.

- ``config/defaults.yaml``: lowest configuration layer
- ``schemas/config.schema.yaml``: JSON Schema for the merged configuration
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

DATA_PACKAGE = "tinabuild.data"


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Filesystem path of ``<subpackage>/<filename>`` under tinabuild/data."""
    root = Path(str(resources.files(DATA_PACKAGE)))
    path = root / subpackage
    return path / filename if filename else path


@lru_cache(maxsize=None)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """Parse a bundled YAML mapping once per process.

    The returned dict is shared between callers; copy before mutating.
    """
    text = get_data_path(subpackage, filename).read_text(encoding="utf-8")
    loaded = yaml.safe_load(text)
    return loaded if isinstance(loaded, dict) else {}


__all__ = ["DATA_PACKAGE", "get_data_path", "read_yaml"]
