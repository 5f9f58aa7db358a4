import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError

from astro_layouts.blueprint import LayoutBlueprint, default_blueprint
from astro_layouts.config import PRESETS_DIR

logger = logging.getLogger("astro_layouts.presets")

PRESET_PATTERNS = ("*.yaml", "*.yml")


class PresetsManager:
    """
    Loads starter layouts the editor offers under "New Layout from preset".

    Each file in the presets directory holds one LayoutBlueprint in its wire
    form (camelCase keys). The built-in starter is always present under its
    own name and a file cannot replace it.
    """

    def __init__(self, presets_dir: Optional[Path] = None):
        self.presets_dir = Path(presets_dir) if presets_dir is not None else PRESETS_DIR
        self._cache: Dict[str, LayoutBlueprint] = {}
        self._builtin = default_blueprint()
        self._cache[self._builtin.name] = self._builtin

    def load_all(self) -> None:
        """
        Reloads all presets from the configured directory.
        Clears existing in-memory cache, keeping only the built-in starter.
        """
        self._cache = {self._builtin.name: self._builtin}
        if not self.presets_dir.exists():
            logger.warning(f"Presets directory '{self.presets_dir}' not found.")
            return

        paths = sorted(path for pattern in PRESET_PATTERNS for path in self.presets_dir.glob(pattern))
        for path in paths:
            try:
                data = yaml.safe_load(path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    logger.warning(f"Skipping preset {path}: not a mapping")
                    continue
                preset = LayoutBlueprint.from_dict(data)
            except (yaml.YAMLError, ValidationError, OSError) as e:
                logger.warning(f"Failed to load preset {path}: {e}")
                continue
            if preset.name == self._builtin.name:
                logger.warning(f"Skipping preset {path}: '{preset.name}' is reserved")
                continue
            self._cache[preset.name] = preset
        logger.info(f"Loaded {len(self._cache) - 1} preset(s) from '{self.presets_dir}'")

    def get_preset(self, name: str) -> Optional[LayoutBlueprint]:
        """
        Fetch a preset by name. The copy is the caller's to edit.
        """
        preset = self._cache.get(name)
        if preset is None:
            return None
        return preset.model_copy(deep=True)

    def list_presets(self) -> List[str]:
        return list(self._cache.keys())


# Global instance for app
presets_manager = PresetsManager()
