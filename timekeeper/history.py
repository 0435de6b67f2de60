"""Day and week summaries of the recorded time, and progress toward goals.

Days are bounded by local midnight. A block belongs to the day its start falls
in and counts with its full duration there, even when it runs past midnight.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from timekeeper.core.errors import StoreError
from timekeeper.core.timezone import local_midnight, local_now, next_local_midnight
from timekeeper.models import Block
from timekeeper.settings import Settings, Weekday
from timekeeper.store import BlockStore

log = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
# Past this much remaining time a projected finish time is not worth showing
FINISH_TIME_HORIZON = timedelta(hours=10)


class GoalStatus(Enum):
    """Represents how far a goal is from being met."""
    zero_goal = auto()
    still_needs = auto()
    reached = auto()


@dataclass(frozen=True)
class GoalState:
    """A goal status; `remaining` is only non-zero for `still_needs`."""
    status: GoalStatus
    remaining: timedelta = timedelta(0)


@dataclass(frozen=True)
class GoalProgress:
    """What to show for a goal: the state, the fraction done, the finish time."""
    state: GoalState
    fraction: Optional[float]
    finishes_at: Optional[datetime] = None


@dataclass
class DayBlock:
    """The blocks that started on one day and their total."""
    day: date
    blocks: List[Block] = field(default_factory=list)
    total: timedelta = timedelta(0)


def start_of_week(day: date, start_weekday: Weekday) -> date:
    """Return the latest date on or before `day` that falls on `start_weekday`."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=(day.weekday() - int(start_weekday)) % DAYS_IN_WEEK)


def remaining_goal(goal: timedelta, elapsed: timedelta) -> GoalState:
    """Compare the time spent with a goal. A goal of zero or less is disabled."""
    if goal <= timedelta(0):
        return GoalState(GoalStatus.zero_goal)
    if elapsed >= goal:
        return GoalState(GoalStatus.reached)
    return GoalState(GoalStatus.still_needs, goal - elapsed)


def goal_progress(state: GoalState, goal: timedelta, running: bool,
                  now: Optional[datetime] = None) -> GoalProgress:
    """Work out the progress bar of a goal.

    While the stopwatch runs and the goal is close, also project when the goal
    will be met if tracking simply continues.
    """
    if state.status is GoalStatus.zero_goal:
        return GoalProgress(state, None)
    if state.status is GoalStatus.reached:
        return GoalProgress(state, 1.0)

    fraction = 1.0 - state.remaining / goal
    finishes_at = None
    if running and state.remaining < FINISH_TIME_HORIZON:
        finishes_at = (now or local_now()) + state.remaining
    return GoalProgress(state, fraction, finishes_at)


class HistoryAggregator:
    """Summarises the blocks of a BlockStore by day and by week."""

    def __init__(self, blocks: BlockStore, clock: Callable = local_now):
        self.blocks = blocks
        self.clock = clock

    def blocks_in_day(self, day: date) -> Tuple[timedelta, List[Block]]:
        """Return the total and the blocks starting on `day`, in start order.

        The running block is counted up to now without touching the store.
        A failing store is logged and reported as an empty day.
        """
        if isinstance(day, datetime):
            day = day.date()
        try:
            blocks = self.blocks.in_range(local_midnight(day), next_local_midnight(day),
                                          include_after=True)
        except StoreError as err:
            log.warning(f'Failed to read the blocks of {day}: {err}')
            return timedelta(0), []

        now = None
        for block in blocks:
            if block.running:
                now = now or self.clock()
                block.end = max(block.end, now)

        total = sum((block.duration for block in blocks), timedelta(0))
        return total, blocks

    def blocks_in_week(self, day: date,
                       start_weekday: Weekday = Weekday.monday) -> Tuple[timedelta, List[DayBlock]]:
        """Return the grand total and the seven days of the week holding `day`."""
        first = start_of_week(day, start_weekday)
        days = []
        grand_total = timedelta(0)
        for offset in range(DAYS_IN_WEEK):
            current = first + timedelta(days=offset)
            total, blocks = self.blocks_in_day(current)
            days.append(DayBlock(day=current, blocks=blocks, total=total))
            grand_total += total
        return grand_total, days

    def today(self) -> date:
        return self.clock().date()

    def remaining_daily_goal(self, settings: Settings) -> GoalState:
        total, _ = self.blocks_in_day(self.today())
        return remaining_goal(settings.daily_goal, total)

    def remaining_weekly_goal(self, settings: Settings) -> GoalState:
        total, _ = self.blocks_in_week(self.today(), settings.start_of_week)
        return remaining_goal(settings.weekly_goal, total)
