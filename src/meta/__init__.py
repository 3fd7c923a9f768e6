from __future__ import annotations

from .settings import EngineSettings, load_engine_settings, read_yaml_mapping

__all__ = ["EngineSettings", "load_engine_settings", "read_yaml_mapping"]
