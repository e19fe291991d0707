# src/klean/config/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class SourceSpec(BaseModel):
    """
    Where the data lives. Either an existing ``table`` in the store, or a
    ``csv`` file that is bulk-loaded into the store first.
    """

    uri: str = Field("memory://", description="Store URI (memory://, duckdb:///file.db, postgres://…).")
    table: Optional[str] = Field(None, description="Table to clean.")
    csv: Optional[str] = Field(None, description="CSV file to load before cleaning.")
    separator: str = Field(",", description="CSV field separator.")
    overwrite: bool = Field(True, description="Replace the table if it already exists.")

    @model_validator(mode="after")
    def _table_or_csv(self) -> "SourceSpec":
        if not self.table and not self.csv:
            raise ValueError("source needs either 'table' or 'csv'")
        return self


class RuleSpec(BaseModel):
    """
    Declarative specification for a rule in a clean plan.
    """

    id: Optional[str] = Field(None, description="Stable rule id; derived when omitted.")
    name: str = Field(..., description="Registered rule name (e.g. fd) or 'module:Class'.")
    tables: List[str] = Field(default_factory=list, description="Target tables; defaults to the source table.")
    params: Dict[str, Any] = Field(default_factory=dict, description="Parameters passed to the rule.")


class CleanPlan(BaseModel):
    source: SourceSpec
    rules: List[RuleSpec] = Field(..., min_length=1)
