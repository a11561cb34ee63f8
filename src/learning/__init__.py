"""
Learning: the script contracts behind sets and runs.

- adapters: turn raw source text into question/answer pairs
- methods: weight cards and update them from responses
- registry: inbuilt scripts and custom script files
"""

from .adapters import Adapter, load_adapter, load_adapter_source
from .methods import Method, load_method, load_method_source
from .registry import ADAPTERS, METHODS, list_inbuilt

__all__ = [
    "Adapter",
    "load_adapter",
    "load_adapter_source",
    "Method",
    "load_method",
    "load_method_source",
    "ADAPTERS",
    "METHODS",
    "list_inbuilt",
]
