"""
Script Sandbox: restricted execution of adapter and method scripts.

Scripts are compiled with RestrictedPython and run against a globals
dictionary holding only:
- RestrictedPython's guards (attribute, item, iteration and write access)
- a reduced set of safe builtins
- the host capability table (see host_api)
- explicit bindings such as SOURCE for adapters

Each Sandbox owns its own capability table; nothing is registered globally.
Calls are synchronous. An optional timeout abandons a call that runs too long.
"""

from __future__ import annotations

import operator
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger
from RestrictedPython import compile_restricted, safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from src.core.exceptions import (
    DrillError,
    ScriptCompileError,
    ScriptRuntimeError,
    ScriptTimeoutError,
)

from .host_api import build_capabilities

# Builtins added on top of RestrictedPython's safe_builtins
EXTRA_BUILTINS = {
    "all": all,
    "any": any,
    "dict": dict,
    "enumerate": enumerate,
    "filter": filter,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "reversed": reversed,
    "set": set,
    "sum": sum,
}

INPLACE_OPERATORS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
}


def _inplacevar(op: str, target: Any, value: Any) -> Any:
    try:
        return INPLACE_OPERATORS[op](target, value)
    except KeyError:
        raise NotImplementedError(f"operator {op} is not available to scripts") from None


def _apply(func: Callable, *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


@dataclass(frozen=True)
class CompiledScript:
    """Restricted bytecode for one script."""

    name: str
    code: Any


@dataclass
class LoadedScript:
    """A script whose top-level body has run, with the namespace it produced."""

    name: str
    namespace: dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.namespace.get(key, default)

    def has_function(self, key: str) -> bool:
        return callable(self.namespace.get(key))


class Sandbox:
    """
    Compiles and runs scripts inside a capability whitelist.

    Failures never leak host exceptions: parse and policy violations become
    ScriptCompileError, anything raised while running becomes
    ScriptRuntimeError. Engine errors raised by host functions (RegexError)
    pass through with the script context attached.
    """

    def __init__(
        self,
        capabilities: Mapping[str, Callable] | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the sandbox.

        Args:
            capabilities: Host functions visible to scripts (default: build_capabilities())
            timeout: Seconds one call may run before it is abandoned (None = no limit)
        """
        self.capabilities = capabilities if capabilities is not None else build_capabilities()
        self.timeout = timeout

    def compile(self, source: str, name: str) -> CompiledScript:
        """
        Compile a script in restricted mode.

        Raises:
            ScriptCompileError: syntax errors or forbidden constructs
        """
        try:
            code = compile_restricted(source, filename=f"<{name}>", mode="exec")
        except SyntaxError as e:
            raise ScriptCompileError(f"compiling script failed: {e}", script=name) from e
        logger.debug(f"Compiled script {name}")
        return CompiledScript(name=name, code=code)

    def execute(
        self,
        script: CompiledScript,
        bindings: Mapping[str, Any] | None = None,
        phase: str = "load",
    ) -> LoadedScript:
        """
        Run a compiled script's top-level body.

        Args:
            script: Output of compile()
            bindings: Extra names bound before the body runs
            phase: Label used in error context

        Returns:
            LoadedScript with the resulting namespace
        """
        namespace = self._build_namespace(script.name, bindings)

        def run_body() -> None:
            exec(script.code, namespace)

        self._invoke(run_body, script.name, phase)
        return LoadedScript(name=script.name, namespace=namespace)

    def call(
        self,
        loaded: LoadedScript,
        function_name: str,
        *args: Any,
        card_id: str | None = None,
    ) -> Any:
        """Call a function defined by a loaded script."""
        func = loaded.get(function_name)
        if not callable(func):
            raise ScriptRuntimeError(
                f"script does not define a '{function_name}' function",
                script=loaded.name,
                phase=function_name,
                card_id=card_id,
            )
        return self._invoke(lambda: func(*args), loaded.name, function_name, card_id)

    def _build_namespace(
        self, name: str, bindings: Mapping[str, Any] | None
    ) -> dict[str, Any]:
        builtins = dict(safe_builtins)
        builtins.update(EXTRA_BUILTINS)

        namespace: dict[str, Any] = {
            "__builtins__": builtins,
            "__name__": name,
            "__metaclass__": type,
            "_getattr_": safer_getattr,
            "_getitem_": default_guarded_getitem,
            "_getiter_": default_guarded_getiter,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_unpack_sequence_": guarded_unpack_sequence,
            "_write_": full_write_guard,
            "_inplacevar_": _inplacevar,
            "_apply_": _apply,
        }
        namespace.update(self.capabilities)
        if bindings:
            namespace.update(bindings)
        return namespace

    def _invoke(
        self,
        thunk: Callable[[], Any],
        script_name: str,
        phase: str,
        card_id: str | None = None,
    ) -> Any:
        if self.timeout is None:
            return self._guarded(thunk, script_name, phase, card_id)

        outcome: dict[str, Any] = {}

        def target() -> None:
            try:
                outcome["value"] = self._guarded(thunk, script_name, phase, card_id)
            except DrillError as e:
                outcome["error"] = e

        # Daemon thread: an abandoned call cannot keep the process alive
        worker = threading.Thread(target=target, name=f"script-{script_name}", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            raise ScriptTimeoutError(
                f"script call did not finish within {self.timeout}s",
                script=script_name,
                phase=phase,
                card_id=card_id,
            )
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("value")

    @staticmethod
    def _guarded(
        thunk: Callable[[], Any],
        script_name: str,
        phase: str,
        card_id: str | None,
    ) -> Any:
        try:
            return thunk()
        except DrillError as e:
            e.with_context(script=script_name, phase=phase, card_id=card_id)
            raise
        except Exception as e:
            raise ScriptRuntimeError(
                f"{type(e).__name__}: {e}",
                script=script_name,
                phase=phase,
                card_id=card_id,
            ) from e
