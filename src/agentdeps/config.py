"""
Config files -- config.yaml preferences and agents.yaml dependency lists.

    <config_dir>/config.yaml    clone method, install method, target agents
    <config_dir>/agents.yaml    global dependencies
    ./agents.yaml               project dependencies

Files are parsed with PyYAML and validated with the pydantic models in
``agentdeps.models``. Anything malformed becomes a ConfigError, the one
error that stops a whole run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .logs import EventLog
from .models import Dependency, GlobalConfig, ProjectConfig, Selection
from .paths import config_dir

logger = logging.getLogger("agentdeps.config")

CONFIG_FILE = "config.yaml"
AGENTS_FILE = "agents.yaml"
DEFAULT_REF = "main"


def global_config_path() -> Path:
    return config_dir() / CONFIG_FILE


def global_agents_yaml_path() -> Path:
    return config_dir() / AGENTS_FILE


def project_agents_yaml_path(project_root: Optional[Path] = None) -> Path:
    return (project_root or Path.cwd()) / AGENTS_FILE


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML: {exc}", path) from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config: {exc}", path) from exc


def _write_yaml(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False, width=10_000),
        encoding="utf-8",
    )


# --- global config ------------------------------------------------------


def load_global_config(path: Optional[Path] = None) -> Optional[GlobalConfig]:
    """Load config.yaml, or return None when it does not exist yet.

    Raises:
        ConfigError: If the file is unreadable or holds invalid values.
    """
    path = path or global_config_path()
    if not path.is_file():
        return None

    raw = _read_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ConfigError("config.yaml must be a mapping", path)
    try:
        return GlobalConfig(**raw)
    except ValidationError as exc:
        raise ConfigError(_validation_message(exc), path) from exc


def save_global_config(config: GlobalConfig, path: Optional[Path] = None) -> Path:
    path = path or global_config_path()
    data = config.model_dump(mode="json", exclude_defaults=True)
    # Always spell out the choices the user made during setup.
    data["clone_method"] = config.clone_method.value
    data["install_method"] = config.install_method.value
    data["agents"] = list(config.agents)
    _write_yaml(path, data)
    logger.info("Saved global config to %s", path)
    return path


# --- agents.yaml --------------------------------------------------------


def _normalize_selection(
    value: Any, repo: str, field: str, events: Optional[EventLog]
) -> Selection:
    # Omitted or true means everything.
    if value is None or value is True or value == "*":
        return "*"
    if value is False:
        return False
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)

    message = f'Dependency "{repo}" has unexpected {field} value ({value!r}), defaulting to "*"'
    if events is not None:
        events.warn("config.normalize", message)
    else:
        logger.warning(message)
    return "*"


def _normalize_dependency(raw: Any, index: int, events: Optional[EventLog]) -> Dependency:
    if not isinstance(raw, dict) or not raw.get("repo"):
        raise ConfigError(f"Dependency at index {index} is missing required 'repo' field")
    repo = str(raw["repo"])
    return Dependency(
        repo=repo,
        ref=str(raw.get("ref") or DEFAULT_REF),
        skills=_normalize_selection(raw.get("skills"), repo, "skills", events),
        agents=_normalize_selection(raw.get("agents"), repo, "agents", events),
    )


def load_project_config(path: Path, events: Optional[EventLog] = None) -> ProjectConfig:
    """Load an agents.yaml. A missing file reads as no dependencies.

    Args:
        path: agents.yaml location.
        events: Receives normalisation warnings when given.

    Raises:
        ConfigError: If the file or one of its dependencies is malformed.
    """
    if not path.is_file():
        return ProjectConfig()

    raw = _read_yaml(path)
    if not raw:
        return ProjectConfig()
    if not isinstance(raw, dict):
        raise ConfigError("agents.yaml must be a mapping", path)

    deps = raw.get("dependencies")
    if deps is None:
        logger.warning("%s has no 'dependencies' field", path)
        return ProjectConfig()
    if not isinstance(deps, list):
        raise ConfigError("'dependencies' must be a list", path)

    try:
        return ProjectConfig(
            dependencies=[_normalize_dependency(d, i, events) for i, d in enumerate(deps)]
        )
    except ConfigError as exc:
        raise ConfigError(str(exc), path) from exc


def save_project_config(path: Path, config: ProjectConfig) -> None:
    """Write agents.yaml, leaving defaults (ref main, select all) implicit."""
    entries = []
    for dep in config.dependencies:
        entry: dict[str, Any] = {"repo": dep.repo}
        if dep.ref != DEFAULT_REF:
            entry["ref"] = dep.ref
        if dep.skills != "*":
            entry["skills"] = dep.skills
        if dep.agents != "*":
            entry["agents"] = dep.agents
        entries.append(entry)
    _write_yaml(path, {"dependencies": entries})


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "config"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
