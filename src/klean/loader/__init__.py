# src/klean/loader/__init__.py
from klean.loader.csv import CSVLoader, LoadResult, default_table_name

__all__ = ["CSVLoader", "LoadResult", "default_table_name"]
