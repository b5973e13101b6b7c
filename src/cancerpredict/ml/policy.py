"""Classification policy: turn a model score vector into a label."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from cancerpredict.errors import PolicyError

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_THRESHOLD: float = 50.0


class Label(StrEnum):
    CANCER = "Cancer"
    NON_CANCER = "Non-cancer"


SUGGESTIONS: dict[Label, str] = {
    Label.CANCER: "Please see a doctor immediately!",
    Label.NON_CANCER: "No signs of cancer were detected.",
}


@dataclass(frozen=True)
class Decision:
    """Outcome of applying the policy to one score vector."""

    label: Label
    suggestion: str
    confidence: float


@dataclass(frozen=True)
class ClassificationPolicy:
    """Binary threshold on the highest model score, expressed as a percentage.

    A confidence strictly greater than ``threshold`` is labelled cancer;
    a confidence equal to the threshold is not.
    """

    threshold: float = DEFAULT_THRESHOLD

    def decide(self, scores: Sequence[float]) -> Decision:
        """Map a score vector to a label and suggestion.

        Raises:
            PolicyError: If ``scores`` is empty.
        """
        if len(scores) == 0:
            raise PolicyError("Score vector is empty")

        confidence = float(max(scores)) * 100
        label = Label.CANCER if confidence > self.threshold else Label.NON_CANCER
        return Decision(label=label, suggestion=SUGGESTIONS[label], confidence=confidence)
