"""Layered values: merge, YAML codec, store and cluster-supplied layers."""

from .cluster import load_cluster_values
from .codec import parse_values, read_values_file, write_values_file
from .merge import Values, merge_values
from .store import Layer, ValueStore

__all__ = [
    "Layer",
    "ValueStore",
    "Values",
    "load_cluster_values",
    "merge_values",
    "parse_values",
    "read_values_file",
    "write_values_file",
]
