"""
Shared utilities for ontolex.

Provides:
- Environment variable handling with a central registry
- JSON file helpers with deterministic output
"""

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


# ============================================================================
# JSON Helpers
# ============================================================================

def dump_json(data: Any) -> str:
    """Serialize JSON the way every generated file is written."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json(path: Path, data: Any) -> Path:
    """Write a whole JSON file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_json(data), encoding="utf-8")
    return path


def read_json(path: Path) -> Any:
    """Read a JSON file. Raises FileNotFoundError / json.JSONDecodeError."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# ============================================================================
# Environment Variable Registry
# ============================================================================

class EnvVarType(str, Enum):
    """Type of environment variable."""

    STRING = "string"
    BOOL = "bool"


@dataclass
class EnvVarInfo:
    """A registered environment variable."""

    name: str
    var_type: EnvVarType
    default: Any
    description: str = ""
    group: str = ""  # e.g. "inputs", "outputs"

    def get_current_value(self) -> Any:
        raw = os.environ.get(self.name)
        if raw is None:
            return self.default
        if self.var_type == EnvVarType.BOOL:
            return raw.lower() in ("true", "1", "yes", "on")
        return raw

    def is_set(self) -> bool:
        return self.name in os.environ

    def to_dict(self, include_value: bool = True) -> dict[str, Any]:
        result = {
            "name": self.name,
            "type": self.var_type.value,
            "default": self.default,
            "description": self.description,
            "group": self.group,
            "is_set": self.is_set(),
        }
        if include_value:
            result["value"] = self.get_current_value()
        return result


class EnvRegistry:
    """
    Registry of every environment variable read through get_env_*.

    Lets `ontolex env` document the settings a run depends on.
    """

    _instance: "EnvRegistry | None" = None
    _vars: dict[str, EnvVarInfo]

    def __new__(cls) -> "EnvRegistry":
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._vars = {}
        return cls._instance

    def register(
        self,
        name: str,
        var_type: EnvVarType,
        default: Any,
        description: str = "",
        group: str = "",
    ) -> EnvVarInfo:
        if name in self._vars:
            existing = self._vars[name]
            if description and not existing.description:
                existing.description = description
            if group and not existing.group:
                existing.group = group
            return existing

        info = EnvVarInfo(
            name=name,
            var_type=var_type,
            default=default,
            description=description,
            group=group,
        )
        self._vars[name] = info
        return info

    def get(self, name: str) -> EnvVarInfo | None:
        return self._vars.get(name)

    def all(self) -> dict[str, EnvVarInfo]:
        return dict(self._vars)

    def groups(self) -> list[str]:
        return sorted(set(v.group for v in self._vars.values() if v.group))

    def by_group(self, group: str) -> dict[str, EnvVarInfo]:
        return {k: v for k, v in self._vars.items() if v.group == group}

    def to_dict(self, include_values: bool = True) -> dict[str, Any]:
        return {
            name: info.to_dict(include_value=include_values)
            for name, info in sorted(self._vars.items())
        }

    def to_json(self, include_values: bool = True, indent: int = 2) -> str:
        return json.dumps(self.to_dict(include_values), indent=indent)

    def to_markdown(self) -> str:
        """Export registry as a markdown table per group."""
        lines = ["# Environment Variables\n"]
        for group in self.groups() or [""]:
            group_vars = self.by_group(group)
            if not group_vars:
                continue
            lines.append(f"\n## {group.title() if group else 'General'}\n")
            lines.append("| Variable | Type | Default | Description |")
            lines.append("|----------|------|---------|-------------|")
            for name, info in sorted(group_vars.items()):
                default_str = f"`{info.default}`" if info.default != "" else '""'
                lines.append(
                    f"| `{name}` | {info.var_type.value} | {default_str} | {info.description} |"
                )
        return "\n".join(lines)

    def to_env_example(self) -> str:
        """Export registry as .env.example content."""
        lines = ["# Environment Variables for ontolex", "#"]
        for group in self.groups() or [""]:
            group_vars = self.by_group(group)
            if not group_vars:
                continue
            if group:
                lines.append(f"\n# === {group.upper()} ===")
            for name, info in sorted(group_vars.items()):
                if info.description:
                    lines.append(f"# {info.description}")
                lines.append(f"{name}={info.default}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all registered variables (mainly for testing)."""
        self._vars.clear()


_registry = EnvRegistry()


def get_env_registry() -> EnvRegistry:
    """Get the global environment variable registry."""
    return _registry


def get_env_str(
    key: str,
    default: str = "",
    description: str = "",
    group: str = "",
) -> str:
    """Get a string from an environment variable and register it."""
    _registry.register(
        name=key,
        var_type=EnvVarType.STRING,
        default=default,
        description=description,
        group=group,
    )
    return os.environ.get(key, default)


def get_env_bool(
    key: str,
    default: bool = False,
    description: str = "",
    group: str = "",
) -> bool:
    """Get a boolean (true/1/yes/on) from an environment variable and register it."""
    _registry.register(
        name=key,
        var_type=EnvVarType.BOOL,
        default=default,
        description=description,
        group=group,
    )
    value = os.environ.get(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes", "on")


def dump_env_config(format: str = "json", include_values: bool = True) -> str:
    """
    Dump all registered environment variables.

    Args:
        format: Output format ("json", "markdown", "env")
        include_values: Include current values (json only)

    Returns:
        Formatted string
    """
    if format in ("md", "markdown"):
        return _registry.to_markdown()
    if format == "env":
        return _registry.to_env_example()
    return _registry.to_json(include_values=include_values)
