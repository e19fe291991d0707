# src/klean/config/loader.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from klean.config.models import CleanPlan
from klean.errors import ConfigError


class CleanPlanLoader:
    """
    Load a clean plan from YAML (``.yml``/``.yaml``) or JSON.

    Example plan::

        source:
          uri: duckdb:///hospital.db
          csv: data/hospital.csv
        rules:
          - name: fd
            params: {fd: "zipcode | city"}
    """

    @staticmethod
    def from_path(path: Union[str, Path]) -> CleanPlan:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Clean plan not found: {p}")
        text = p.read_text(encoding="utf-8")
        try:
            if p.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot parse clean plan {p}: {e}") from e
        return CleanPlanLoader.from_dict(data, origin=str(p))

    @staticmethod
    def from_dict(data: Dict[str, Any], origin: str = "<dict>") -> CleanPlan:
        if not isinstance(data, dict):
            raise ConfigError(f"Clean plan {origin} must be a mapping, got {type(data).__name__}")
        try:
            return CleanPlan.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid clean plan {origin}: {e}") from e
