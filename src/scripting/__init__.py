"""
Scripting: the sandbox that runs adapter and method scripts.

Components:
- host_api: regex and clock functions scripts may call
- sandbox: RestrictedPython compilation and guarded execution
"""

from .host_api import build_capabilities
from .sandbox import CompiledScript, LoadedScript, Sandbox

__all__ = [
    "build_capabilities",
    "CompiledScript",
    "LoadedScript",
    "Sandbox",
]
