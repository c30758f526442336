import pytest

from app.core.exceptions import (
    InvalidEngineerLevelError,
    InvalidIdentifierError,
    InvalidPillarScoreError,
    InvalidWeightedScoreError,
    NarrativeExceedsWordLimitError,
)
from app.models.identifiers import ReviewCycleId, UserId
from app.models.review_values import (
    BonusTier,
    EngineerLevel,
    Narrative,
    PillarScores,
    ReviewStatus,
    WeightedScore,
)


class TestPillarScores:
    def test_equality_is_structural(self):
        assert PillarScores(4, 3, 4, 3, 2) == PillarScores(4, 3, 4, 3, 2)
        assert PillarScores(4, 3, 4, 3, 2) != PillarScores(4, 3, 4, 3, 1)

    @pytest.mark.parametrize("bad", [-1, 5, 2.5, True, "3", None])
    def test_rejects_out_of_range_and_non_integers(self, bad):
        with pytest.raises(InvalidPillarScoreError):
            PillarScores(bad, 0, 0, 0, 0)

    def test_is_immutable(self):
        scores = PillarScores.zero()
        with pytest.raises(AttributeError):
            scores.direction = 4

    def test_dict_conversion(self):
        data = {
            "project_impact": 4,
            "direction": 3,
            "engineering_excellence": 2,
            "operational_ownership": 1,
            "people_impact": 0,
        }
        assert PillarScores.from_dict(data).to_dict() == data


class TestReviewStatus:
    def test_progression_order(self):
        assert ReviewStatus.DRAFT.precedes(ReviewStatus.SUBMITTED)
        assert ReviewStatus.SUBMITTED.precedes(ReviewStatus.CALIBRATED)
        assert not ReviewStatus.CALIBRATED.precedes(ReviewStatus.DRAFT)

    def test_submitted_covers_calibrated(self):
        assert not ReviewStatus.DRAFT.is_submitted
        assert ReviewStatus.SUBMITTED.is_submitted
        assert ReviewStatus.CALIBRATED.is_submitted

    def test_from_string(self):
        assert ReviewStatus.from_string(" submitted ") == ReviewStatus.SUBMITTED
        with pytest.raises(ValueError):
            ReviewStatus.from_string("ARCHIVED")


class TestEngineerLevel:
    def test_parses_case_insensitively(self):
        assert EngineerLevel.from_string("senior") == EngineerLevel.SENIOR

    @pytest.mark.parametrize("bad", ["", "   ", "PRINCIPAL", None])
    def test_rejects_unknown_levels(self, bad):
        with pytest.raises(InvalidEngineerLevelError):
            EngineerLevel.from_string(bad)

    def test_ordering(self):
        ranks = [level.rank for level in EngineerLevel]
        assert ranks == sorted(ranks)
        assert EngineerLevel.JUNIOR.rank < EngineerLevel.MANAGER.rank


class TestNarrative:
    def test_trims_and_counts_words(self):
        narrative = Narrative.from_text("  Shipped the billing rewrite  ")
        assert narrative.text == "Shipped the billing rewrite"
        assert narrative.word_count == 4

    def test_whitespace_only_is_blank(self):
        assert Narrative.from_text("   ").is_blank
        assert Narrative.from_text(None).is_blank

    def test_word_limit(self):
        Narrative.from_text("word " * 1000)
        with pytest.raises(NarrativeExceedsWordLimitError):
            Narrative.from_text("word " * 1001)


class TestWeightedScoreAndBonusTier:
    def test_exceeds_at_3_4(self):
        score = WeightedScore(3.4)
        assert score.percentage == 85.0
        assert score.bonus_tier == BonusTier.EXCEEDS

    def test_meets_at_3_0(self):
        assert WeightedScore(3.0).bonus_tier == BonusTier.MEETS

    def test_below_at_1_6(self):
        assert WeightedScore(1.6).bonus_tier == BonusTier.BELOW

    def test_tier_boundaries(self):
        assert WeightedScore(3.39).bonus_tier == BonusTier.MEETS
        assert WeightedScore(2.0).bonus_tier == BonusTier.MEETS
        assert WeightedScore(1.99).bonus_tier == BonusTier.BELOW

    def test_from_raw_rounds_half_up(self):
        assert WeightedScore.from_raw(3.3999999999999995).value == 3.4
        assert WeightedScore.from_raw(2.345).value == 2.35

    @pytest.mark.parametrize("bad", [-0.1, 4.01, float("nan"), None, True])
    def test_rejects_invalid_values(self, bad):
        with pytest.raises(InvalidWeightedScoreError):
            WeightedScore(bad)


class TestIdentifiers:
    def test_same_uuid_different_kinds_are_not_equal(self):
        raw = "6f1c1f0e-8a53-4e0c-9d0a-1f1b2c3d4e5f"
        assert UserId(raw) == UserId(raw.upper())
        assert UserId(raw) != ReviewCycleId(raw)

    def test_rejects_malformed_ids(self):
        with pytest.raises(InvalidIdentifierError):
            UserId("not-a-uuid")
        with pytest.raises(InvalidIdentifierError):
            ReviewCycleId("")

    def test_generate_is_unique(self):
        assert UserId.generate() != UserId.generate()
