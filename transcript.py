"""Merging of incremental recognition results into running transcripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from models import RawResult, RecognitionResult


@dataclass
class MergeOutcome:
    new_final_suffix: str = ""
    interim: str = ""
    results: List[RecognitionResult] = field(default_factory=list)

    def final_transcript(self, prior_final: str) -> str:
        return prior_final + self.new_final_suffix


def merge(prior_final: str, incoming_results: Sequence[RawResult], start_index: int) -> MergeOutcome:
    """Fold the entries from ``start_index`` onward into final/interim text.

    Entries before ``start_index`` were already accounted for by earlier
    events. Interim text is rebuilt from scratch on every call; the caller
    concatenates ``prior_final`` with the returned suffix. Confidence is
    passed through as reported.
    """
    outcome = MergeOutcome()
    for raw in list(incoming_results)[max(start_index, 0):]:
        if raw.alternatives:
            best = raw.alternatives[0]
            text, confidence = best.text, best.confidence
        else:
            text, confidence = "", 0.0

        outcome.results.append(
            RecognitionResult(text=text, confidence=confidence, is_final=raw.is_final)
        )
        if raw.is_final:
            outcome.new_final_suffix += text
        else:
            outcome.interim += text
    return outcome
