"""
Integration Tests for the randomize -> validate -> save cycle.
"""
import pytest

from courseplan.assignment import (
    NO_EMPTY_GROUPS,
    NO_OVERLAPPING_QUESTIONS,
    NO_REPEAT_BUNDLES,
    BundleAssignmentEngine,
    InconsistentAssignmentData,
    Reason,
    make_rng,
    pick_best,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def quiz(builder):
    assessment = builder.assessment("Quiz 1")
    group_1 = builder.group(assessment, "Warm-up")
    group_2 = builder.group(assessment, "Challenge")
    bundles = {
        "B1": builder.bundle(group_1, "B1"),
        "B2": builder.bundle(group_1, "B2"),
        "B3": builder.bundle(group_2, "B3"),
    }
    builder.question(assessment, "Sum of list", bundles["B1"])
    builder.question(assessment, "Reverse string", bundles["B2"])
    builder.question(assessment, "Binary search", bundles["B3"])
    return assessment, (group_1, group_2), bundles


class TestEngineCycle:
    def test_seeded_randomize_validate_save(self, db_session, builder, quiz):
        """A passing candidate is saved and reloads as a passing assignment."""
        assessment, _, _ = quiz
        for name in ("Alice", "Bob", "Carol"):
            builder.student(name)
        engine = BundleAssignmentEngine(db_session, assessment.id, rng=make_rng("quiz-1"))

        candidate = engine.randomize()
        report = engine.validate(candidate)
        assert report.passed is True

        assert engine.save(candidate) == 6
        assert engine.validate(engine.load()).passed is True
        assert engine.load().primary_rows() == candidate.primary_rows()

    def test_same_seed_same_candidate(self, db_session, builder, quiz):
        assessment, _, _ = quiz
        for name in ("Alice", "Bob", "Carol", "Dan"):
            builder.student(name)

        first = BundleAssignmentEngine(db_session, assessment.id, rng=make_rng(7)).randomize()
        second = BundleAssignmentEngine(db_session, assessment.id, rng=make_rng(7)).randomize()

        assert first.primary_rows() == second.primary_rows()

    def test_repeat_of_submitted_bundle_is_flagged(self, db_session, builder, quiz):
        """The only Challenge bundle was already submitted by Alice."""
        assessment, (_, group_2), bundles = quiz
        alice = builder.student("Alice")
        builder.assignment(alice, assessment, bundles["B3"], submitted=True)
        engine = BundleAssignmentEngine(db_session, assessment.id, rng=make_rng(1))

        report = engine.validate(engine.randomize())

        assert report.passed is False
        assert report[NO_REPEAT_BUNDLES].offending_cells == {
            (alice.user_id, group_2.id): Reason.REPEAT_BUNDLE
        }

    def test_best_candidate_avoids_repeats(self, db_session, builder, quiz):
        """Drawing several candidates finds one that skips the submitted Warm-up bundle."""
        assessment, (group_1, _), bundles = quiz
        alice = builder.student("Alice")
        builder.assignment(alice, assessment, bundles["B1"], submitted=True)
        engine = BundleAssignmentEngine(db_session, assessment.id, rng=make_rng("retry"))
        context = engine.capture_context()

        candidates = []
        for _ in range(30):
            candidate = engine.randomize()
            candidates.append((candidate, engine.validate(candidate, context)))
        best, report = pick_best(candidates)

        assert report.passed is True
        assert best.bundle_for(alice.user_id, group_1.id) == bundles["B2"].id

    def test_structural_problems_are_reported(self, db_session, builder, quiz):
        """Shared questions and empty groups fail with their titles."""
        assessment, _, bundles = quiz
        builder.student("Alice")
        builder.question(assessment, "Fizzbuzz", bundles["B1"], bundles["B2"])
        builder.group(assessment, "Bonus")
        engine = BundleAssignmentEngine(db_session, assessment.id, rng=make_rng(3))

        report = engine.validate(engine.randomize())

        assert report[NO_OVERLAPPING_QUESTIONS].info.questions == ("Fizzbuzz",)
        assert report[NO_EMPTY_GROUPS].info.groups == ("Bonus",)
        assert report.passed is False

    def test_stale_assignment_for_unknown_student_is_fatal(self, db_session, builder, quiz):
        """A pending row of a user who left the course cannot be folded in."""
        assessment, _, bundles = quiz
        leaver = builder.student("Eve")
        builder.assignment(leaver, assessment, bundles["B1"])
        db_session.delete(leaver)
        db_session.flush()

        engine = BundleAssignmentEngine(db_session, assessment.id)

        with pytest.raises(InconsistentAssignmentData):
            engine.load()
