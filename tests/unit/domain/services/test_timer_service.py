"""
Unit tests for TimerService.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.models.base import InvalidTransition, BusinessRuleViolation, ValidationError
from app.domain.models.time_entry import TimeEntryStatus, ActivityType
from app.domain.services.timer_service import TimerService


T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


class TestTimerService:
    """Test cases for the lifecycle operations of TimerService."""

    def setup_method(self):
        """Set up test fixtures."""
        self.timer = TimerService()

    def start(self, **kwargs):
        return self.timer.start(tenant_id="t1", user_id="u1", now=T0, **kwargs)

    def test_start_builds_running_entry(self):
        """Test that start creates a running entry and a START activity."""
        entry, activity = self.start(project_id="p1", description="  Coding  ")

        assert entry.status == TimeEntryStatus.RUNNING
        assert entry.start_time == T0
        assert entry.last_resumed_at == T0
        assert entry.duration == 0
        assert entry.end_time is None
        assert entry.description == "Coding"
        assert activity.type == ActivityType.START
        assert activity.entry_id == entry.id
        assert activity.timestamp == T0
        assert activity.project_id == "p1"

    def test_start_clamps_future_start_time(self):
        """Test that a start time after now is clamped to now."""
        entry, _ = self.start(start_time=at(3600))

        assert entry.start_time == T0

    def test_start_accepts_past_start_time(self):
        """Test that a backdated start is kept."""
        entry, _ = self.start(start_time=at(-600))

        assert entry.start_time == at(-600)
        assert entry.last_resumed_at == at(-600)

    def test_start_normalises_offset_to_utc(self):
        """Test that an offset start time becomes the same instant in UTC."""
        plus_two = timezone(timedelta(hours=2))
        entry, _ = self.start(start_time=datetime(2024, 1, 15, 10, 0, tzinfo=plus_two))

        assert entry.start_time == at(-3600)
        assert entry.start_time.utcoffset() == timedelta(0)

    def test_start_reads_naive_time_as_utc(self):
        """Test that a naive start time is taken as UTC."""
        entry, _ = self.start(start_time=datetime(2024, 1, 15, 8, 30))

        assert entry.start_time == at(-1800)

    def test_scenario_pause_resume_stop(self):
        """Test start, pause at 90s, resume at 150s, stop at 200s yields 140 seconds."""
        entry, _ = self.start()

        pause = self.timer.pause(entry, at(90))
        assert entry.status == TimeEntryStatus.PAUSED
        assert entry.duration == 90
        assert entry.paused_at == at(90)
        assert pause.type == ActivityType.PAUSE

        resume = self.timer.resume(entry, at(150))
        assert entry.status == TimeEntryStatus.RUNNING
        assert entry.last_resumed_at == at(150)
        assert entry.paused_at is None
        assert entry.duration == 90
        assert resume.type == ActivityType.RESUME

        stop = self.timer.stop(entry, at(200))
        assert entry.status == TimeEntryStatus.STOPPED
        assert entry.duration == 140
        assert entry.end_time == at(200)
        assert stop.type == ActivityType.STOP
        assert stop.timestamp == at(200)

    def test_duration_equals_sum_of_running_intervals(self):
        """Test that many pause/resume cycles add exactly the running time."""
        entry, _ = self.start()
        running = [(0, 30), (45, 100), (130, 131), (500, 620)]

        for index, (resumed, paused) in enumerate(running):
            if index:
                self.timer.resume(entry, at(resumed))
            previous = entry.duration
            self.timer.pause(entry, at(paused))
            assert entry.duration >= previous

        self.timer.stop(entry, at(700))

        assert entry.duration == sum(end - begin for begin, end in running)

    def test_stop_from_paused_does_not_accrue(self):
        """Test that stopping a paused entry keeps the persisted duration."""
        entry, _ = self.start()
        self.timer.pause(entry, at(60))

        self.timer.stop(entry, at(600))

        assert entry.duration == 60
        assert entry.end_time == at(600)

    def test_second_stop_is_rejected(self):
        """Test that stopping twice fails the second time and changes nothing."""
        entry, _ = self.start()
        self.timer.stop(entry, at(10))

        with pytest.raises(InvalidTransition):
            self.timer.stop(entry, at(20))

        assert entry.duration == 10
        assert entry.end_time == at(10)

    def test_pause_of_paused_entry_is_rejected(self):
        """Test that repeating pause is an invalid transition."""
        entry, _ = self.start()
        self.timer.pause(entry, at(10))

        with pytest.raises(InvalidTransition):
            self.timer.pause(entry, at(20))

        assert entry.duration == 10

    def test_resume_of_running_entry_is_rejected(self):
        """Test that resuming a running entry is an invalid transition."""
        entry, _ = self.start()

        with pytest.raises(InvalidTransition):
            self.timer.resume(entry, at(10))

    def test_transition_rejects_start(self):
        """Test that START cannot be applied to an existing entry."""
        entry, _ = self.start()

        with pytest.raises(BusinessRuleViolation):
            self.timer.transition(entry, "start", at(5))

    def test_skewed_clock_never_decreases_duration(self):
        """Test that a pause read before the last resume adds nothing."""
        entry, _ = self.start()
        self.timer.pause(entry, at(50))
        self.timer.resume(entry, at(100))

        self.timer.pause(entry, at(90))

        assert entry.duration == 50

    def test_correct_stopped_entry(self):
        """Test correcting duration, project and description of a stopped entry."""
        entry, _ = self.start(project_id="p1", description="draft")
        self.timer.stop(entry, at(100))

        self.timer.correct(entry, at(200), duration=3600, project_id=None, description="Review")

        assert entry.duration == 3600
        assert entry.project_id is None
        assert entry.description == "Review"
        assert entry.updated_at == at(200)

    def test_correct_leaves_unset_fields(self):
        """Test that fields not passed are left alone."""
        entry, _ = self.start(project_id="p1", description="draft")
        self.timer.stop(entry, at(100))

        self.timer.correct(entry, at(200), duration=50)

        assert entry.project_id == "p1"
        assert entry.description == "draft"

    def test_correct_active_entry_is_rejected(self):
        """Test that running entries cannot be corrected."""
        entry, _ = self.start()

        with pytest.raises(BusinessRuleViolation) as exc_info:
            self.timer.correct(entry, at(10), duration=5)

        assert exc_info.value.code == "ENTRY_NOT_TERMINAL"
        assert entry.duration == 0

    def test_correct_rejects_out_of_range_duration(self):
        """Test that corrections outside the allowed range are rejected."""
        entry, _ = self.start()
        self.timer.stop(entry, at(10))

        with pytest.raises(ValidationError):
            self.timer.correct(entry, at(20), duration=-5)
