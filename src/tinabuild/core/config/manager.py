"""
tinabuild configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import jsonschema
import yaml

from tinabuild.core.exceptions import ConfigError
from tinabuild.core.utils.merge import merge_layers
from tinabuild.data import read_yaml as read_data_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "TINABUILD_"
PROJECT_CONFIG_NAMES = ("tinabuild.yaml", "tinabuild.yml", ".tinabuild.yaml")


class ConfigManager:
    """Load, merge, and validate tinabuild configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: TINABUILD_<section>__<key>
    2. Project config: explicit path, else tinabuild.yaml / tinabuild.yml /
       .tinabuild.yaml in the project root
    3. Bundled defaults: tinabuild.data/config/defaults.yaml
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        *,
        config_path: Optional[Path | str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.project_root = Path(project_root or Path.cwd()).expanduser().resolve()
        self.config_path = Path(config_path).expanduser() if config_path else None
        self.environ = os.environ if environ is None else environ

    # ---------- sources ----------

    def defaults(self) -> Dict[str, Any]:
        # Round-trip through json to hand out a private copy of the cached mapping.
        return json.loads(json.dumps(read_data_yaml("config", "defaults.yaml")))

    def project_config_file(self) -> Optional[Path]:
        if self.config_path is not None:
            path = self.config_path
            if not path.is_absolute():
                path = self.project_root / path
            if not path.exists():
                raise ConfigError(
                    f"Config file not found: {path}",
                    context={"path": str(path)},
                )
            return path
        for name in PROJECT_CONFIG_NAMES:
            candidate = self.project_root / name
            if candidate.is_file():
                return candidate
        return None

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file must contain a mapping: {path}",
                context={"path": str(path)},
            )
        return data

    # ---------- environment overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if value.strip().lower() in {"null", "none", "~"}:
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[str]:
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            raise ConfigError(
                f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.",
                context={"key": f"{ENV_PREFIX}{raw}"},
            )
        return [seg.lower() for seg in segs]

    def iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(self.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            if not raw:
                raise ConfigError(f"Malformed {ENV_PREFIX}* key", context={"key": key})
            yield self._parse_env_key(raw), self._coerce_type(self.environ[key])

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path, value in self.iter_env_overrides():
            cur: Dict[str, Any] = cfg
            for part in path[:-1]:
                nxt = cur.get(part)
                if not isinstance(nxt, dict):
                    nxt = {}
                    cur[part] = nxt
                cur = nxt
            cur[path[-1]] = value
            logger.debug("Config override from environment: %s", ".".join(path))
        return cfg

    # ---------- validation ----------

    def validate(self, cfg: Dict[str, Any]) -> None:
        schema = read_data_yaml("schemas", "config.schema.yaml")
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.absolute_path))
        if not errors:
            return
        messages = []
        for err in errors[:5]:
            where = ".".join(str(p) for p in err.absolute_path) or "<root>"
            messages.append(f"{where}: {err.message}")
        raise ConfigError(
            "Invalid configuration: " + "; ".join(messages),
            context={"errors": messages},
        )

    # ---------- entry point ----------

    def load_config(self, *, validate: bool = True) -> Dict[str, Any]:
        project_file = self.project_config_file()
        project_cfg = None
        if project_file is not None:
            logger.debug("Loading project config from %s", project_file)
            project_cfg = self.load_yaml(project_file)
        cfg = merge_layers(self.defaults(), project_cfg)
        cfg = self.apply_env_overrides(cfg)
        if validate:
            self.validate(cfg)
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX", "PROJECT_CONFIG_NAMES"]
