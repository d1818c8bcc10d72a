"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .defaults import DefaultConfig, get_default_config

CONFIG_SECTIONS = ("parameters", "risk_limits", "execution_settings", "market_conditions")


@dataclass(frozen=True)
class ConfigLoader:
    """Builds algorithm configurations from defaults, type presets and request overrides."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=config_dir,
            defaults=get_default_config(),
        )

    def load_algorithm_preset(self, algorithm_type: str) -> dict[str, Any]:
        """Load the per-type preset from algorithms.yaml, empty if absent."""
        presets_file = self.config_dir / "algorithms.yaml"

        if not presets_file.exists():
            return {}

        with open(presets_file) as f:
            presets = yaml.safe_load(f) or {}

        return presets.get("algorithms", {}).get(algorithm_type, {}) or {}  # type: ignore[no-any-return]

    def base_config(self, algorithm_type: str) -> dict[str, Any]:
        """Global defaults for one algorithm type, before any preset is applied."""
        algorithm_params = getattr(self.defaults.algorithms, algorithm_type, None)
        return {
            "parameters": self._dataclass_to_dict(algorithm_params) if algorithm_params is not None else {},
            "risk_limits": self._dataclass_to_dict(self.defaults.risk_limits),
            "execution_settings": self._dataclass_to_dict(self.defaults.execution_settings),
            "market_conditions": self._dataclass_to_dict(self.defaults.market_conditions),
        }

    def merge_config(
        self,
        algorithm_type: str,
        request_overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Request overrides (highest priority)
        2. Algorithm-type preset from algorithms.yaml
        3. Global defaults (lowest priority)

        Only the parameters, risk_limits, execution_settings and
        market_conditions sections are merged; other keys are ignored.
        """
        config = self.base_config(algorithm_type)

        preset = self.load_algorithm_preset(algorithm_type)
        config = self._deep_merge(config, self._sections(preset))

        if request_overrides:
            config = self._deep_merge(config, self._sections(request_overrides))

        return config

    def apply_overrides(self, config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
        """Deep merge the section overrides of an update request into an existing config."""
        base = {key: config[key] for key in CONFIG_SECTIONS if key in config}
        return self._deep_merge(base, self._sections(overrides))

    def _sections(self, source: dict[str, Any]) -> dict[str, Any]:
        return {
            key: value for key, value in source.items()
            if key in CONFIG_SECTIONS and isinstance(value, dict)
        }

    def _dataclass_to_dict(self, obj: Any) -> Any:
        """Convert nested dataclasses to dictionaries, tuples to lists."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                result[field_name] = self._dataclass_to_dict(getattr(obj, field_name))
            return result
        if isinstance(obj, tuple):
            return list(obj)
        return obj

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
