"""
Bounded in-process store of design candidates from recent batches.

Lets the 3D and recolor endpoints attach their results to the candidate a
client is working on, identified by candidate id or image url.
"""

from collections import OrderedDict
from typing import Iterable, Optional

from design_studio.core.errors import ValidationError
from design_studio.models.design_models import DesignCandidate


class CandidateStore:

    def __init__(self, max_candidates: int = 256):
        self.max_candidates = max_candidates
        self._candidates: "OrderedDict[str, DesignCandidate]" = OrderedDict()

    def add(self, candidate: DesignCandidate) -> DesignCandidate:
        self._candidates[candidate.id] = candidate
        self._candidates.move_to_end(candidate.id)
        while len(self._candidates) > self.max_candidates:
            self._candidates.popitem(last=False)
        return candidate

    def add_all(self, candidates: Iterable[DesignCandidate]) -> None:
        for candidate in candidates:
            if candidate.image_url:
                self.add(candidate)

    def get(self, candidate_id: str) -> Optional[DesignCandidate]:
        return self._candidates.get(candidate_id)

    def resolve(self, image_url: str, candidate_id: Optional[str] = None) -> DesignCandidate:
        """
        Find a candidate by id, then by image url; otherwise start tracking a new one.

        Raises:
            ValidationError: The id names a candidate with a different image
        """
        if candidate_id and candidate_id in self._candidates:
            candidate = self._candidates[candidate_id]
            if candidate.image_url and candidate.image_url != image_url:
                raise ValidationError(f"image_url does not match candidate {candidate_id}")
            return candidate
        for candidate in self._candidates.values():
            if candidate.image_url == image_url:
                return candidate
        return self.add(DesignCandidate(variation_number=0, style_hint="", image_url=image_url))

    def __len__(self) -> int:
        return len(self._candidates)
