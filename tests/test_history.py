import logging
from datetime import date, timedelta

import pytest

from timekeeper.core.errors import IntegrityFault, StoreError
from timekeeper.history import (DAYS_IN_WEEK, GoalState, GoalStatus, goal_progress,
                                remaining_goal, start_of_week)
from timekeeper.settings import Settings, Weekday
from tests.helpers import local


class TestStartOfWeek:
    '''Test finding the first day of a week.'''

    @pytest.mark.parametrize('start_weekday', list(Weekday))
    def test_properties(self, start_weekday):
        '''The result is on the right weekday, at most six days back, and stable.'''
        day = date(2024, 2, 20)
        for offset in range(30):
            current = day + timedelta(days=offset)
            first = start_of_week(current, start_weekday)
            assert first.weekday() == start_weekday
            assert timedelta(0) <= current - first < timedelta(days=DAYS_IN_WEEK)
            assert start_of_week(first, start_weekday) == first

    def test_sunday_weeks(self):
        assert start_of_week(date(2024, 3, 13), Weekday.sunday) == date(2024, 3, 10)

    def test_across_new_year(self):
        assert start_of_week(date(2025, 1, 1), Weekday.monday) == date(2024, 12, 30)

    def test_accepts_datetime(self):
        assert start_of_week(local(2024, 3, 13, 23, 59), Weekday.monday) == date(2024, 3, 11)


class TestRemainingGoal:
    '''Test comparing the tracked time with a goal.'''

    def test_zero_goal(self):
        assert remaining_goal(timedelta(0), timedelta(hours=1)).status is GoalStatus.zero_goal
        assert remaining_goal(timedelta(hours=-1), timedelta(0)).status is GoalStatus.zero_goal

    def test_still_needs(self):
        state = remaining_goal(timedelta(hours=8), timedelta(hours=3))
        assert state == GoalState(GoalStatus.still_needs, timedelta(hours=5))

    def test_reached_exactly(self):
        assert remaining_goal(timedelta(hours=8), timedelta(hours=8)).status is GoalStatus.reached

    def test_monotonic(self):
        '''More tracked time never means more remaining time.'''
        goal = timedelta(hours=4)
        previous = goal
        for minutes in range(0, 6 * 60, 15):
            state = remaining_goal(goal, timedelta(minutes=minutes))
            assert state.remaining <= previous
            previous = state.remaining
            if minutes >= 4 * 60:
                assert state.status is GoalStatus.reached


class TestGoalProgress:
    '''Test the progress shown for a goal.'''

    def test_fraction(self):
        state = remaining_goal(timedelta(hours=8), timedelta(hours=2))
        progress = goal_progress(state, timedelta(hours=8), running=False)
        assert progress.fraction == pytest.approx(0.25)
        assert progress.finishes_at is None

    def test_finish_time_while_running(self, clock):
        state = remaining_goal(timedelta(hours=8), timedelta(hours=6))
        progress = goal_progress(state, timedelta(hours=8), running=True, now=clock())
        assert progress.finishes_at == clock() + timedelta(hours=2)

    def test_no_finish_time_when_far_away(self, clock):
        state = remaining_goal(timedelta(hours=40), timedelta(hours=1))
        progress = goal_progress(state, timedelta(hours=40), running=True, now=clock())
        assert progress.finishes_at is None

    def test_reached_and_zero(self):
        reached = remaining_goal(timedelta(hours=1), timedelta(hours=2))
        assert goal_progress(reached, timedelta(hours=1), running=True).fraction == 1.0
        zero = remaining_goal(timedelta(0), timedelta(hours=2))
        assert goal_progress(zero, timedelta(0), running=True).fraction is None


class TestBlocksInDay:
    '''Test the summary of one day.'''

    def test_total_and_order(self, history, make_block, tag):
        day = date(2024, 3, 12)
        late = make_block(local(2024, 3, 12, 14), duration=timedelta(minutes=30))
        early = make_block(local(2024, 3, 12, 9), duration=timedelta(hours=2), tag=tag)
        make_block(local(2024, 3, 11, 9))

        total, blocks = history.blocks_in_day(day)

        assert total == timedelta(hours=2, minutes=30)
        assert [block.id for block in blocks] == [early.id, late.id]
        assert blocks[0].tag == tag

    def test_block_past_midnight(self, history, make_block):
        '''A block belongs with its full duration to the day it started.'''
        make_block(local(2024, 3, 11, 23, 30), duration=timedelta(hours=1))

        total, _ = history.blocks_in_day(date(2024, 3, 11))
        assert total == timedelta(hours=1)
        total, blocks = history.blocks_in_day(date(2024, 3, 12))
        assert total == timedelta(0)
        assert blocks == []

    def test_block_starting_at_midnight(self, history, make_block):
        '''A block starting exactly at midnight belongs to the new day.'''
        block = make_block(local(2024, 3, 12, 0, 0))

        _, blocks = history.blocks_in_day(date(2024, 3, 12))
        assert [b.id for b in blocks] == [block.id]
        _, blocks = history.blocks_in_day(date(2024, 3, 11))
        assert blocks == []

    def test_running_block_counts_to_now(self, history, stopwatch, blocks, clock):
        '''The running block counts up to now without writing to the store.'''
        block = stopwatch.start()
        clock.advance(minutes=45)

        total, blocks_today = history.blocks_in_day(clock().date())

        assert total == timedelta(minutes=45)
        assert blocks_today[0].end == clock()
        assert blocks.get(block.id).end == block.start

    def test_empty_day(self, history):
        assert history.blocks_in_day(date(2024, 3, 12)) == (timedelta(0), [])

    def test_store_failure_reads_as_empty(self, history, blocks, make_block, monkeypatch, caplog):
        '''A failing store is logged and the day reads as empty.'''
        make_block(local(2024, 3, 13, 9))

        def broken_in_range(*args, **kwargs):
            raise StoreError('The store failed: disk I/O error', operation='blocks_in_range')

        monkeypatch.setattr(blocks, 'in_range', broken_in_range)
        with caplog.at_level(logging.WARNING):
            assert history.blocks_in_day(date(2024, 3, 13)) == (timedelta(0), [])
            assert history.remaining_daily_goal(Settings()) == GoalState(
                GoalStatus.still_needs, timedelta(hours=8))
        assert 'disk I/O error' in caplog.text

    def test_integrity_fault_propagates(self, history, blocks, monkeypatch):
        def corrupt_in_range(*args, **kwargs):
            raise IntegrityFault('The block refers to the missing tag 7')

        monkeypatch.setattr(blocks, 'in_range', corrupt_in_range)
        with pytest.raises(IntegrityFault):
            history.blocks_in_day(date(2024, 3, 13))


class TestBlocksInWeek:
    '''Test the summary of a week.'''

    def test_seven_days_from_monday(self, history, make_block):
        make_block(local(2024, 3, 11, 9), duration=timedelta(hours=1))
        make_block(local(2024, 3, 13, 9), duration=timedelta(hours=2))
        make_block(local(2024, 3, 17, 9), duration=timedelta(hours=3))
        make_block(local(2024, 3, 18, 9), duration=timedelta(hours=4))

        grand_total, days = history.blocks_in_week(date(2024, 3, 14))

        assert [day.day for day in days] == [date(2024, 3, 11) + timedelta(days=n)
                                             for n in range(7)]
        assert [day.total for day in days] == [timedelta(hours=h) for h in (1, 0, 2, 0, 0, 0, 3)]
        assert grand_total == timedelta(hours=6)
        assert grand_total == sum((day.total for day in days), timedelta(0))

    def test_sunday_start(self, history, make_block):
        make_block(local(2024, 3, 17, 9), duration=timedelta(hours=3))
        grand_total, days = history.blocks_in_week(date(2024, 3, 17), Weekday.sunday)
        assert days[0].day == date(2024, 3, 17)
        assert days[-1].day == date(2024, 3, 23)
        assert grand_total == timedelta(hours=3)


class TestRemainingGoals:
    '''Test the goals against the recorded history.'''

    def test_daily_goal(self, history, make_block, clock):
        make_block(local(2024, 3, 13, 8), duration=timedelta(hours=1))
        make_block(local(2024, 3, 12, 8), duration=timedelta(hours=5))
        settings = Settings(daily_goal=timedelta(hours=3))

        state = history.remaining_daily_goal(settings)
        assert state == GoalState(GoalStatus.still_needs, timedelta(hours=2))

    def test_weekly_goal(self, history, make_block):
        make_block(local(2024, 3, 11, 8), duration=timedelta(hours=5))
        make_block(local(2024, 3, 13, 8), duration=timedelta(hours=1))
        make_block(local(2024, 3, 4, 8), duration=timedelta(hours=9))
        settings = Settings(weekly_goal=timedelta(hours=6))

        assert history.remaining_weekly_goal(settings).status is GoalStatus.reached

    def test_disabled_goal(self, history):
        settings = Settings(daily_goal=timedelta(0))
        assert history.remaining_daily_goal(settings).status is GoalStatus.zero_goal

    def test_running_block_closes_the_gap(self, history, stopwatch, clock):
        '''Tracking time never makes the remaining goal grow.'''
        settings = Settings(daily_goal=timedelta(hours=1))
        stopwatch.start()
        previous = history.remaining_daily_goal(settings).remaining
        for _ in range(5):
            clock.advance(minutes=15)
            state = history.remaining_daily_goal(settings)
            assert state.remaining <= previous
            previous = state.remaining
        assert state.status is GoalStatus.reached
