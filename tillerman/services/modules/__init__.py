"""Module discovery, hooks and the per-module reconcile pipeline."""

from .context import RunContext
from .hooks import HookRunner
from .model import BindingType, Module, ModuleHook, ModuleHooks
from .orchestrator import Orchestrator, RunReport, prepare_run
from .pipeline import ModuleOutcome, ModulePipeline, Stage
from .registry import ModuleRegistry, build_registry, discover_hooks, discover_modules, is_enabled

__all__ = [
    "BindingType",
    "HookRunner",
    "Module",
    "ModuleHook",
    "ModuleHooks",
    "ModuleOutcome",
    "ModulePipeline",
    "ModuleRegistry",
    "Orchestrator",
    "RunContext",
    "RunReport",
    "Stage",
    "build_registry",
    "discover_hooks",
    "discover_modules",
    "is_enabled",
    "prepare_run",
]
