"""
Persisted defaults.

Stores the last used pipeline parameters and run options in a small JSON
file so the next run starts from them. Unknown keys are ignored and
missing keys fall back to the built-in defaults.
"""

from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from synapse_counter.core.params import PipelineConfig

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".synapse_counter.json"


@dataclass
class RunOptions:
    """Batch options that are not part of the analysis itself."""
    input_dir: str = ""
    output_dir: str = ""
    recursive: bool = False
    save_outputs: bool = False


@dataclass
class Settings:
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    run: RunOptions = field(default_factory=RunOptions)


def _coerce(template: Any, values: Dict[str, Any]) -> Dict[str, Any]:
    """Keep known fields and cast them to the type of the template's value."""
    out = {}
    for f in fields(template):
        if f.name not in values:
            continue
        default = getattr(template, f.name)
        v = values[f.name]
        try:
            if isinstance(default, bool):
                # only real JSON booleans; bool("false") would be True
                if not isinstance(v, bool):
                    raise TypeError(v)
                out[f.name] = v
            else:
                out[f.name] = type(default)(v)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid setting %s=%r", f.name, v)
    return out


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Read settings from `path` (default: ~/.synapse_counter.json)."""
    p = Path(path) if path else DEFAULT_SETTINGS_PATH
    if not p.is_file():
        return Settings()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Couldn't read settings from %s (%s); using defaults", p, e)
        return Settings()
    if not isinstance(raw, dict):
        logger.warning("Settings file %s is not a JSON object; using defaults", p)
        return Settings()

    base = Settings()
    pipeline = replace(base.pipeline, **_coerce(base.pipeline, raw.get("pipeline", {}) or {}))
    run = replace(base.run, **_coerce(base.run, raw.get("run", {}) or {}))
    return Settings(pipeline=pipeline, run=run)


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> Path:
    """Write settings as JSON and return the file path."""
    p = Path(path) if path else DEFAULT_SETTINGS_PATH
    payload = {"pipeline": asdict(settings.pipeline), "run": asdict(settings.run)}
    p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.debug("Saved settings to %s", p)
    return p


def reset_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Overwrite the settings file with the built-in defaults."""
    settings = Settings()
    save_settings(settings, path)
    return settings
