from __future__ import annotations

import importlib
import sys
from pathlib import Path
from types import ModuleType

import yaml
from expandvars import expandvars
from pydantic import BaseModel, ConfigDict, field_validator

from tallytest.registry import Registry, TestCase, default_registry


class RunConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "tallytest"
    tests: list[str]
    paths: list[str] = []
    color: bool | None = None
    emoji: bool = True

    @field_validator("tests")
    @classmethod
    def tests_must_not_be_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("tests must not be empty")
        for ref in v:
            module, _, attr = ref.partition(":")
            if not module or (":" in ref and not attr):
                raise ValueError(
                    f"Invalid test reference '{ref}', expected 'module' or 'module:name'"
                )
        return v

    @field_validator("paths")
    @classmethod
    def expand_path_variables(cls, v: list[str]) -> list[str]:
        """Expand ${VAR} references, listing every unset variable at once."""
        expanded: list[str] = []
        missing: list[str] = []
        for value in v:
            try:
                expanded.append(expandvars(value, nounset=True))
            except Exception:
                # Variable is missing and has no default
                missing.append(f"  {value}")
        if missing:
            details = "\n".join(missing)
            raise ValueError(f"paths reference unset environment variables:\n{details}")
        return expanded


def load_config(path: Path) -> RunConfig:
    """Load and validate a run config from a YAML file."""
    config_dir = path.parent.resolve()

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Config {path} must be a mapping")

    config = RunConfig(**raw)

    # Resolve relative import paths relative to config file location
    config.paths = [
        str(p if p.is_absolute() else (config_dir / p).resolve())
        for p in (Path(entry) for entry in config.paths)
    ]

    return config


def _import(module_name: str) -> ModuleType:
    try:
        return importlib.import_module(module_name)
    except Exception as e:
        # user modules can fail at import time in any way
        raise ValueError(f"Cannot import test module '{module_name}': {e}") from e


def _module_cases(module: ModuleType) -> list[TestCase]:
    local = getattr(module, "REGISTRY", None)
    if isinstance(local, Registry):
        return list(local)
    return [c for c in default_registry() if c.module == module.__name__]


def _named_cases(module: ModuleType, attr: str) -> list[TestCase]:
    try:
        obj = getattr(module, attr)
    except AttributeError:
        raise ValueError(
            f"Module '{module.__name__}' has no test named '{attr}'"
        ) from None
    if isinstance(obj, TestCase):
        return [obj]
    if isinstance(obj, Registry):
        return list(obj)
    if callable(obj):
        return [TestCase(name=attr, body=obj)]
    raise ValueError(f"'{module.__name__}:{attr}' is not a test case")


def resolve_tests(config: RunConfig) -> list[TestCase]:
    """Import every reference in ``config.tests`` and return them in order."""
    for entry in reversed(config.paths):
        if entry not in sys.path:
            sys.path.insert(0, entry)
    importlib.invalidate_caches()

    registry = Registry()
    for ref in config.tests:
        module_name, _, attr = ref.partition(":")
        module = _import(module_name)
        cases = _named_cases(module, attr) if attr else _module_cases(module)
        if not cases:
            raise ValueError(f"No tests found in module '{module_name}'")
        for case in cases:
            registry.add(case)

    return list(registry)
