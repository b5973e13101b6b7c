"""Tests for the binary classification policy."""

from __future__ import annotations

import numpy as np
import pytest

from cancerpredict.errors import PolicyError
from cancerpredict.ml.policy import SUGGESTIONS, ClassificationPolicy, Label


class TestClassificationPolicy:
    @pytest.mark.parametrize(
        ("scores", "expected"),
        [
            ([0.8], Label.CANCER),
            ([0.1, 0.51], Label.CANCER),
            ([0.3], Label.NON_CANCER),
            ([0.5], Label.NON_CANCER),
            ([0.0, 0.0], Label.NON_CANCER),
        ],
    )
    def test_label_from_max_score(self, scores: list[float], expected: Label) -> None:
        assert ClassificationPolicy().decide(scores).label == expected

    def test_cancer_suggestion_is_urgent(self) -> None:
        decision = ClassificationPolicy().decide([0.8])

        assert decision.label == "Cancer"
        assert decision.suggestion == SUGGESTIONS[Label.CANCER]
        assert "doctor" in decision.suggestion.lower()
        assert decision.confidence == pytest.approx(80.0)

    def test_non_cancer_suggestion(self) -> None:
        decision = ClassificationPolicy().decide([0.3])

        assert decision.label == "Non-cancer"
        assert decision.suggestion == SUGGESTIONS[Label.NON_CANCER]

    def test_decide_is_deterministic(self) -> None:
        policy = ClassificationPolicy()
        assert policy.decide([0.2, 0.7]) == policy.decide([0.2, 0.7])

    def test_custom_threshold(self) -> None:
        policy = ClassificationPolicy(threshold=90.0)
        assert policy.decide([0.85]).label == Label.NON_CANCER
        assert policy.decide([0.95]).label == Label.CANCER

    def test_accepts_numpy_scores(self) -> None:
        assert ClassificationPolicy().decide(np.array([0.1, 0.9], dtype=np.float32)).label == Label.CANCER

    def test_empty_scores_raise(self) -> None:
        with pytest.raises(PolicyError, match="empty"):
            ClassificationPolicy().decide([])
