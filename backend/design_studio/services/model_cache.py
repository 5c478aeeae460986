"""
Bounded cache of finished 3D assets, keyed by source image URL.

Passed into the orchestrator so a repeat request for the same image reuses
the asset instead of paying for another reconstruction job.
"""

from collections import OrderedDict
from typing import Optional


class ModelAssetCache:
    """LRU map: source image url -> 3D asset url."""

    def __init__(self, max_entries: int = 128):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, str]" = OrderedDict()

    def get(self, image_url: str) -> Optional[str]:
        model_url = self._entries.get(image_url)
        if model_url is not None:
            self._entries.move_to_end(image_url)
        return model_url

    def put(self, image_url: str, model_url: str) -> None:
        self._entries[image_url] = model_url
        self._entries.move_to_end(image_url)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, image_url: str) -> bool:
        return image_url in self._entries

    def __len__(self) -> int:
        return len(self._entries)
