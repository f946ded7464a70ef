"""Tests for the routine progression tracker."""

from typing import List

import pytest

from progression import Advance, AdvanceKind, Position, RoutineProgressionTracker


def linear_positions(step_counts: List[int], max_sets: int) -> List[Position]:
    """Positions of a routine in visiting order, from plain nested loops."""
    positions = []
    for exercise_index, count in enumerate(step_counts):
        for set_count in range(max_sets):
            for step_index in range(count):
                positions.append(Position(exercise_index, step_index, set_count))
    return positions


@pytest.mark.unit
class TestAdvance:
    def test_next_step_keeps_set(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        result = tracker.advance(Position(0, 0, 1), step_count=3, exercise_count=1)
        assert result == Advance(Position(0, 1, 1), AdvanceKind.STEP)

    def test_last_step_finishes_set(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        result = tracker.advance(Position(0, 2, 0), step_count=3, exercise_count=1)
        assert result == Advance(Position(0, 0, 1), AdvanceKind.SET)

    def test_last_set_moves_to_next_exercise(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        result = tracker.advance(Position(0, 2, 2), step_count=3, exercise_count=2)
        assert result.kind is AdvanceKind.EXERCISE
        assert result.needs_exercise_load
        assert result.position == Position(1, 0, 0)

    def test_last_set_of_last_exercise_completes(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        result = tracker.advance(Position(1, 1, 2), step_count=2, exercise_count=2)
        assert result.is_complete
        assert result.position == Position(1, 0, 3)

    def test_set_count_is_capped(self):
        tracker = RoutineProgressionTracker(max_sets=2)
        result = tracker.advance(Position(0, 0, 2), step_count=1, exercise_count=1)
        assert result.position.set_count == 2

    def test_single_step_exercise(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        result = tracker.advance(Position(0, 0, 0), step_count=1, exercise_count=1)
        assert result == Advance(Position(0, 0, 1), AdvanceKind.SET)

    def test_exercise_without_steps_is_rejected(self):
        tracker = RoutineProgressionTracker()
        with pytest.raises(ValueError):
            tracker.advance(Position(), step_count=0, exercise_count=1)

    def test_max_sets_must_be_positive(self):
        with pytest.raises(ValueError):
            RoutineProgressionTracker(max_sets=0)


@pytest.mark.unit
class TestTraversal:
    @pytest.mark.parametrize(
        "step_counts,max_sets",
        [([1], 1), ([2], 1), ([4], 3), ([2, 3], 3), ([1, 1, 5], 2), ([3, 1], 1)],
    )
    def test_traversal_is_linear(self, step_counts, max_sets):
        tracker = RoutineProgressionTracker(max_sets=max_sets)
        visited = [Position()]
        for result in tracker.traverse(step_counts):
            if result.is_complete:
                break
            visited.append(result.position)

        assert visited == linear_positions(step_counts, max_sets)
        assert len(set(p.as_tuple() for p in visited)) == len(visited)

    @pytest.mark.parametrize("length", [1, 2, 5])
    def test_l_times_three_matches_finish_an_exercise(self, length):
        tracker = RoutineProgressionTracker(max_sets=3)
        position = Position()
        results = []
        for _ in range(length * 3):
            result = tracker.advance(position, step_count=length, exercise_count=2)
            results.append(result)
            position = result.position

        assert all(r.kind in (AdvanceKind.STEP, AdvanceKind.SET) for r in results[:-1])
        assert results[-1].kind is AdvanceKind.EXERCISE

    def test_l_times_three_matches_complete_last_exercise(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        position = Position()
        for _ in range(4 * 3):
            result = tracker.advance(position, step_count=4, exercise_count=1)
            position = result.position
        assert result.is_complete
        assert position.set_count == 3

    def test_total_matches(self):
        tracker = RoutineProgressionTracker(max_sets=3)
        assert tracker.total_matches([2, 3]) == 15
        assert len(list(tracker.traverse([2, 3]))) == 15
