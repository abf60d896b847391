"""Tests for the scoring engine and match finder."""

import math

import pytest

from app.scoring import (
    DEFAULT_WEIGHTS,
    InvalidInputError,
    TimeSlot,
    Weights,
    find_matches,
    score,
)

MON_AM = {"day": "Monday", "time": "Morning"}
TUE_PM = {"day": "Tuesday", "time": "Evening"}
WED_AM = {"day": "Wednesday", "time": "Morning"}
SUN_PM = {"day": "Sunday", "time": "Evening"}


def volunteer(skills=(), availability=(), **extra):
    return {"skills": list(skills), "availability": list(availability), **extra}


def garden(skills_needed=(), needs_schedule=()):
    return {"skills_needed": list(skills_needed), "needs_schedule": list(needs_schedule)}


class TestScore:
    """Test scoring one volunteer against one garden."""

    def test_partial_skills_and_schedule(self):
        """Verify the half-skills, half-slots case scores 20 + 30 = 50."""
        result = score(
            volunteer(["Weeding", "Harvesting"], [MON_AM]),
            garden(["Weeding", "Planting"], [MON_AM, TUE_PM]),
        )

        assert result.skills_match.matched == ("Weeding",)
        assert result.skills_match.missing == ("Planting",)
        assert result.skills_match.score == pytest.approx(20.0)
        assert result.skills_match.percentage == 50

        assert result.schedule_match.matched == (TimeSlot("Monday", "Morning"),)
        assert result.schedule_match.missing == (TimeSlot("Tuesday", "Evening"),)
        assert result.schedule_match.score == pytest.approx(30.0)
        assert result.schedule_match.percentage == 50

        assert result.overall_score == 50.0

    def test_empty_requirements_score_zero(self):
        """Verify a garden with no requirements contributes nothing on either axis."""
        result = score(volunteer(["Weeding"], [MON_AM]), garden())

        assert result.overall_score == 0
        assert result.skills_match.score == 0
        assert result.schedule_match.score == 0
        assert result.skills_match.matched == ()
        assert result.skills_match.missing == ()
        assert result.schedule_match.matched == ()
        assert result.schedule_match.missing == ()
        assert result.skills_match.percentage == 0

    def test_full_skills_no_schedule(self):
        """Verify 2/2 skills and 0/3 slots gives 40 + 0."""
        result = score(
            volunteer(["Weeding", "Harvesting"], [SUN_PM]),
            garden(["Weeding", "Harvesting"], [MON_AM, TUE_PM, WED_AM]),
        )

        assert result.skills_match.score == pytest.approx(40.0)
        assert result.schedule_match.score == 0
        assert result.overall_score == 40.0
        assert len(result.schedule_match.missing) == 3

    def test_volunteer_availability_is_reported(self):
        """Verify the breakdown carries the volunteer's full availability."""
        result = score(volunteer(["Weeding"], [MON_AM, SUN_PM]), garden(["Weeding"], [MON_AM]))

        assert result.schedule_match.volunteer_available == (
            TimeSlot("Monday", "Morning"),
            TimeSlot("Sunday", "Evening"),
        )

    def test_duplicates_do_not_inflate(self):
        """Verify repeated skills and slots count once on both sides."""
        once = score(volunteer(["Weeding"], [MON_AM]), garden(["Weeding", "Harvesting"], [MON_AM, TUE_PM]))
        twice = score(
            volunteer(["Weeding", "Weeding"], [MON_AM, dict(MON_AM)]),
            garden(["Weeding", "Harvesting", "Weeding"], [MON_AM, TUE_PM, MON_AM]),
        )

        assert twice == once
        assert twice.skills_match.matched == ("Weeding",)

    def test_result_keeps_garden_order(self):
        """Verify matched and missing lists follow the garden's requirement order."""
        result = score(
            volunteer(["Harvesting", "Weeding"], [TUE_PM]),
            garden(["Weeding", "Event Support", "Harvesting"], [TUE_PM, MON_AM]),
        )

        assert result.skills_match.matched == ("Weeding", "Harvesting")
        assert result.skills_match.missing == ("Event Support",)
        assert [str(s) for s in result.schedule_match.missing] == ["Monday Morning"]

    def test_accepts_attribute_objects(self):
        """Verify records may be plain objects with attributes."""

        class Record:
            def __init__(self, **kwargs):
                self.__dict__.update(kwargs)

        slot = Record(day="Monday", time="Morning")
        result = score(
            Record(skills=["Weeding"], availability=[slot]),
            Record(skills_needed=["Weeding"], needs_schedule=[slot]),
        )

        assert result.overall_score == 100.0

    def test_overall_score_rounded_to_two_places(self):
        """Verify one of three skills rounds 13.333... to 13.33."""
        result = score(
            volunteer(["Weeding"], []),
            garden(["Weeding", "Harvesting", "Event Support"], [MON_AM]),
        )

        assert result.overall_score == 13.33
        assert result.skills_match.percentage == 33

    def test_is_deterministic(self):
        """Verify identical inputs give identical output."""
        v = volunteer(["Weeding", "Harvesting"], [MON_AM, TUE_PM])
        g = garden(["Weeding", "Tool Maintenance"], [MON_AM, WED_AM])

        assert score(v, g) == score(v, g)
        assert score(v, g).to_dict() == score(v, g).to_dict()

    def test_score_is_bounded(self):
        """Verify overall score stays between 0 and 100."""
        best = score(volunteer(["Weeding"], [MON_AM]), garden(["Weeding"], [MON_AM]))
        worst = score(volunteer([], []), garden(["Weeding"], [MON_AM]))

        assert best.overall_score == 100.0
        assert worst.overall_score == 0.0

    def test_custom_weights(self):
        """Verify injected weights replace the 40/60 split."""
        result = score(
            volunteer(["Weeding"], []),
            garden(["Weeding"], [MON_AM]),
            Weights(skills=70, schedule=30),
        )

        assert result.overall_score == 70.0

    def test_one_shot_iterators_are_read_once(self):
        """Verify iterator and generator inputs are scored, not silently emptied."""
        result = score(
            {"skills": iter(["Weeding"]), "availability": (s for s in [MON_AM])},
            {"skills_needed": (s for s in ["Weeding"]), "needs_schedule": iter([MON_AM])},
        )

        assert result.skills_match.matched == ("Weeding",)
        assert result.skills_match.score == pytest.approx(40.0)
        assert result.schedule_match.matched == (TimeSlot("Monday", "Morning"),)
        assert result.overall_score == 100.0

    @pytest.mark.parametrize(
        "wrap",
        [list, tuple, set, iter, lambda xs: (x for x in xs)],
        ids=["list", "tuple", "set", "iterator", "generator"],
    )
    @pytest.mark.parametrize("side", ["volunteer", "garden"])
    def test_collection_types(self, wrap, side):
        """Verify any non-string iterable works for skills and slots on either side."""
        slot = TimeSlot("Monday", "Morning")
        v = {"skills": ["Weeding"], "availability": [slot]}
        g = {"skills_needed": ["Weeding"], "needs_schedule": [slot]}
        if side == "volunteer":
            v = {"skills": wrap(v["skills"]), "availability": wrap(v["availability"])}
        else:
            g = {"skills_needed": wrap(g["skills_needed"]), "needs_schedule": wrap(g["needs_schedule"])}

        result = score(v, g)

        assert result.skills_match.matched == ("Weeding",)
        assert result.schedule_match.matched == (slot,)
        assert result.overall_score == 100.0

    def test_time_slot_instances_mix_with_mappings(self):
        """Verify TimeSlot objects and day/time mappings compare as the same slot."""
        result = score(
            volunteer(["Weeding"], [TimeSlot("Tuesday", "Evening")]),
            garden(["Weeding"], [TUE_PM, MON_AM]),
        )

        assert result.schedule_match.matched == (TimeSlot("Tuesday", "Evening"),)
        assert result.schedule_match.missing == (TimeSlot("Monday", "Morning"),)

    def test_to_dict_shape(self):
        """Verify the serialized breakdown uses percentage strings and slot dicts."""
        data = score(
            volunteer(["Weeding", "Harvesting"], [MON_AM]),
            garden(["Weeding", "Planting"], [MON_AM, TUE_PM]),
        ).to_dict()

        assert data["overall_score"] == 50.0
        assert data["skills_match"]["percentage"] == "50%"
        assert data["schedule_match"]["matched"] == [MON_AM]
        assert data["schedule_match"]["missing"] == [TUE_PM]
        assert data["schedule_match"]["volunteer_available"] == [MON_AM]


class TestInvalidInput:
    """Test rejection of malformed records."""

    @pytest.mark.parametrize(
        "record",
        [
            {"availability": [MON_AM]},
            {"skills": None, "availability": [MON_AM]},
            {"skills": "Weeding", "availability": [MON_AM]},
            {"skills": [1, 2], "availability": [MON_AM]},
            {"skills": ["Weeding"], "availability": None},
            {"skills": ["Weeding"], "availability": [{"day": "Monday"}]},
            {"skills": ["Weeding"], "availability": [{"day": "Monday", "time": 9}]},
            {"skills": ["Weeding"], "availability": [{"day": " ", "time": "Morning"}]},
            {"skills": ["Weeding"], "availability": {"day": "Monday", "time": "Morning"}},
        ],
    )
    def test_malformed_volunteer(self, record):
        """Verify malformed volunteer records raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            score(record, garden(["Weeding"], [MON_AM]))

    @pytest.mark.parametrize(
        "skills",
        [iter(["Weeding", 3]), (s for s in [None]), {1}, ("Weeding", b"Weeding")],
    )
    def test_non_string_skills_in_any_collection(self, skills):
        """Verify element checks apply to iterators, sets and tuples too."""
        with pytest.raises(InvalidInputError):
            score({"skills": skills, "availability": [MON_AM]}, garden(["Weeding"], [MON_AM]))

    def test_malformed_garden(self):
        """Verify a garden without needs_schedule is rejected."""
        with pytest.raises(InvalidInputError):
            score(volunteer(["Weeding"], [MON_AM]), {"skills_needed": ["Weeding"]})

    def test_invalid_input_is_a_value_error(self):
        """Verify callers can catch it as ValueError."""
        assert issubclass(InvalidInputError, ValueError)


class TestWeights:
    """Test weight validation."""

    def test_defaults(self):
        """Verify the default split is 40/60."""
        assert DEFAULT_WEIGHTS.skills == 40
        assert DEFAULT_WEIGHTS.schedule == 60

    def test_must_sum_to_100(self):
        """Verify weights that do not add up to 100 are rejected."""
        with pytest.raises(ValueError):
            Weights(skills=50, schedule=60)

    def test_must_be_non_negative(self):
        """Verify negative weights are rejected."""
        with pytest.raises(ValueError):
            Weights(skills=-10, schedule=110)


class TestFindMatches:
    """Test ranking and threshold filtering."""

    @pytest.fixture
    def ranking_garden(self):
        return garden(
            ["Weeding", "Harvesting", "Tool Maintenance", "Event Support"],
            [MON_AM],
        )

    @pytest.fixture
    def candidates(self):
        # scores 10, 60, 40 against ranking_garden
        return [
            volunteer(["Weeding"], [SUN_PM], name="ten"),
            volunteer([], [MON_AM], name="sixty"),
            volunteer(["Weeding", "Harvesting", "Tool Maintenance", "Event Support"], [SUN_PM], name="forty"),
        ]

    def test_zero_threshold_sorts_descending(self, candidates, ranking_garden):
        """Verify every candidate is returned best first."""
        ranked = find_matches(candidates, ranking_garden, min_score=0)

        assert [r.overall_score for _, r in ranked] == [60.0, 40.0, 10.0]
        assert [v["name"] for v, _ in ranked] == ["sixty", "forty", "ten"]

    def test_threshold_filters(self, candidates, ranking_garden):
        """Verify candidates below min_score are dropped."""
        ranked = find_matches(candidates, ranking_garden, min_score=50)

        assert [v["name"] for v, _ in ranked] == ["sixty"]

    def test_threshold_is_inclusive(self, candidates, ranking_garden):
        """Verify a score equal to min_score is kept."""
        ranked = find_matches(candidates, ranking_garden, min_score=40)

        assert [v["name"] for v, _ in ranked] == ["sixty", "forty"]

    def test_default_threshold_is_30(self, candidates, ranking_garden):
        """Verify the default threshold drops the 10-point candidate."""
        ranked = find_matches(candidates, ranking_garden)

        assert [r.overall_score for _, r in ranked] == [60.0, 40.0]

    def test_ties_keep_input_order(self):
        """Verify equal scores keep the order candidates were given in."""
        g = garden(["Weeding"], [MON_AM])
        people = [volunteer(["Weeding"], [], name=n) for n in ("a", "b", "c")]

        ranked = find_matches(people, g, min_score=0)

        assert [v["name"] for v, _ in ranked] == ["a", "b", "c"]

    def test_empty_candidates(self):
        """Verify no candidates gives no matches."""
        assert find_matches([], garden(["Weeding"], [MON_AM])) == []

    def test_output_is_non_increasing_and_above_threshold(self, candidates, ranking_garden):
        """Verify ordering and threshold hold together."""
        ranked = find_matches(candidates * 3, ranking_garden, min_score=15)
        scores = [r.overall_score for _, r in ranked]

        assert scores == sorted(scores, reverse=True)
        assert all(s >= 15 for s in scores)

    @pytest.mark.parametrize("bad", [-1, math.nan, "30", True, None])
    def test_rejects_bad_threshold(self, bad, ranking_garden):
        """Verify negative, NaN and non-numeric thresholds are rejected."""
        with pytest.raises(InvalidInputError):
            find_matches([], ranking_garden, min_score=bad)

    def test_rejects_non_collection(self, ranking_garden):
        """Verify volunteers must be a collection."""
        with pytest.raises(InvalidInputError):
            find_matches(None, ranking_garden)
