"""
In-memory preset registry.

Holds the preset set loaded from the encoder, in load order.
Validates that preset names are unique and picks the default preset.
"""

from typing import Dict, Iterable, List, Optional

from .errors import DuplicatePresetError, PresetNotFoundError
from .models import VideoPreset


class PresetRegistry:
    """
    Ordered, name-indexed preset set.

    Order is significant: the default preset is the second entry
    ("Balanced" in the built-in set) if present, else the first.
    """

    def __init__(self, presets: Optional[Iterable[VideoPreset]] = None):
        self._presets: Dict[str, VideoPreset] = {}
        if presets is not None:
            self.load(presets)

    def load(self, presets: Iterable[VideoPreset]) -> None:
        """
        Replace the registry contents.

        Raises:
            DuplicatePresetError: If two presets share a name
                (the registry is left unchanged)
        """
        loaded: Dict[str, VideoPreset] = {}
        for preset in presets:
            if preset.name in loaded:
                raise DuplicatePresetError(preset.name)
            loaded[preset.name] = preset
        self._presets = loaded

    def get(self, name: str) -> Optional[VideoPreset]:
        return self._presets.get(name)

    def get_or_raise(self, name: str) -> VideoPreset:
        """
        Raises:
            PresetNotFoundError: If no preset has this name
        """
        preset = self.get(name)
        if preset is None:
            raise PresetNotFoundError(name)
        return preset

    def list_presets(self) -> List[VideoPreset]:
        return list(self._presets.values())

    def default_preset(self) -> Optional[VideoPreset]:
        presets = self.list_presets()
        if len(presets) > 1:
            return presets[1]
        return presets[0] if presets else None

    def __len__(self) -> int:
        return len(self._presets)

    def __contains__(self, name: object) -> bool:
        return name in self._presets
