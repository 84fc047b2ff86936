"""
backend/features/tracker/persistence.py

SQL persistence for tracker records (PostgreSQL in production, SQLite in tests).

Same contract as InMemoryTrackerStore. Upserts are select-then-write inside
one session so they behave the same on both backends.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, delete, insert, select, update

from backend.core.database import (
    daily_entries,
    five_second_actions,
    get_db_session,
    goals,
    habit_completions,
    habits,
    level_states,
    user_settings,
    votes,
)
from backend.core.errors import NotFoundError
from backend.features.tracker.store import TrackerStore
from backend.models.tracker import (
    DailyEntry,
    DailyVote,
    FiveSecondRuleAction,
    Goal,
    GoalType,
    Habit,
    HabitCompletion,
    LevelsGameState,
    UserSettings,
)


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back out.
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _upsert(session, table, key_clause, values: dict) -> None:
    existing = session.execute(select(table).where(key_clause)).first()
    if existing is None:
        session.execute(insert(table).values(**values))
    else:
        session.execute(update(table).where(key_clause).values(**values))


class SqlTrackerStore(TrackerStore):
    """Database-backed tracker store."""

    # Votes ------------------------------------------------------------
    @staticmethod
    def _vote(row) -> DailyVote:
        return DailyVote(date=row.date, vote=row.vote, note=row.note, timestamp=_aware(row.timestamp))

    def load_votes(self, user_id: str) -> List[DailyVote]:
        with get_db_session() as session:
            rows = session.execute(
                select(votes).where(votes.c.user_id == user_id).order_by(votes.c.date.desc())
            ).all()
        return [self._vote(r) for r in rows]

    def get_vote(self, user_id: str, date: str) -> Optional[DailyVote]:
        with get_db_session() as session:
            row = session.execute(
                select(votes).where(and_(votes.c.user_id == user_id, votes.c.date == date))
            ).first()
        return self._vote(row) if row else None

    def save_vote(self, user_id: str, vote: DailyVote) -> DailyVote:
        with get_db_session() as session:
            _upsert(
                session,
                votes,
                and_(votes.c.user_id == user_id, votes.c.date == vote.date),
                {"user_id": user_id, "date": vote.date, "vote": vote.vote, "note": vote.note, "timestamp": vote.timestamp},
            )
        return vote

    # Entries ----------------------------------------------------------
    @staticmethod
    def _entry(row) -> DailyEntry:
        return DailyEntry(
            date=row.date,
            presence_score=row.presence_score,
            productivity_score=row.productivity_score,
            deep_work_sets=row.deep_work_sets,
            time_waster_minutes=row.time_waster_minutes,
            timestamp=_aware(row.timestamp),
        )

    def load_entries(self, user_id: str, start: str, end: str) -> List[DailyEntry]:
        with get_db_session() as session:
            rows = session.execute(
                select(daily_entries)
                .where(
                    and_(
                        daily_entries.c.user_id == user_id,
                        daily_entries.c.date >= start,
                        daily_entries.c.date <= end,
                    )
                )
                .order_by(daily_entries.c.date.asc())
            ).all()
        return [self._entry(r) for r in rows]

    def get_entry(self, user_id: str, date: str) -> Optional[DailyEntry]:
        with get_db_session() as session:
            row = session.execute(
                select(daily_entries).where(and_(daily_entries.c.user_id == user_id, daily_entries.c.date == date))
            ).first()
        return self._entry(row) if row else None

    def save_entry(self, user_id: str, entry: DailyEntry) -> DailyEntry:
        with get_db_session() as session:
            _upsert(
                session,
                daily_entries,
                and_(daily_entries.c.user_id == user_id, daily_entries.c.date == entry.date),
                {
                    "user_id": user_id,
                    "date": entry.date,
                    "presence_score": entry.presence_score,
                    "productivity_score": entry.productivity_score,
                    "deep_work_sets": entry.deep_work_sets,
                    "time_waster_minutes": entry.time_waster_minutes,
                    "timestamp": entry.timestamp,
                },
            )
        return entry

    # Goals ------------------------------------------------------------
    @staticmethod
    def _goal(row) -> Goal:
        return Goal(
            id=row.id,
            type=row.type,
            title=row.title,
            date=row.date,
            completed=bool(row.completed),
            created_at=_aware(row.created_at),
        )

    def load_goals(self, user_id: str, goal_type: GoalType, start_key: str, end_key: str) -> List[Goal]:
        with get_db_session() as session:
            rows = session.execute(
                select(goals)
                .where(
                    and_(
                        goals.c.user_id == user_id,
                        goals.c.type == goal_type,
                        goals.c.date >= start_key,
                        goals.c.date <= end_key,
                    )
                )
                .order_by(goals.c.date.asc(), goals.c.created_at.asc())
            ).all()
        return [self._goal(r) for r in rows]

    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        with get_db_session() as session:
            row = session.execute(
                select(goals).where(and_(goals.c.user_id == user_id, goals.c.id == goal_id))
            ).first()
        return self._goal(row) if row else None

    def save_goal(self, user_id: str, goal: Goal) -> Goal:
        with get_db_session() as session:
            _upsert(
                session,
                goals,
                and_(goals.c.user_id == user_id, goals.c.id == goal.id),
                {
                    "id": goal.id,
                    "user_id": user_id,
                    "type": goal.type,
                    "title": goal.title,
                    "date": goal.date,
                    "completed": goal.completed,
                    "created_at": goal.created_at,
                },
            )
        return goal

    def delete_goal(self, user_id: str, goal_id: str) -> None:
        with get_db_session() as session:
            result = session.execute(
                delete(goals).where(and_(goals.c.user_id == user_id, goals.c.id == goal_id))
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Goal {goal_id} not found")

    # Five second rule actions ----------------------------------------
    def load_actions(self, user_id: str, start: str, end: str) -> List[FiveSecondRuleAction]:
        with get_db_session() as session:
            rows = session.execute(
                select(five_second_actions)
                .where(
                    and_(
                        five_second_actions.c.user_id == user_id,
                        five_second_actions.c.date >= start,
                        five_second_actions.c.date <= end,
                    )
                )
                .order_by(five_second_actions.c.timestamp.desc())
            ).all()
        return [
            FiveSecondRuleAction(id=r.id, date=r.date, category=r.category, note=r.note, timestamp=_aware(r.timestamp))
            for r in rows
        ]

    def add_action(self, user_id: str, action: FiveSecondRuleAction) -> FiveSecondRuleAction:
        with get_db_session() as session:
            session.execute(
                insert(five_second_actions).values(
                    id=action.id,
                    user_id=user_id,
                    date=action.date,
                    category=action.category,
                    note=action.note,
                    timestamp=action.timestamp,
                )
            )
        return action

    # Habits -----------------------------------------------------------
    @staticmethod
    def _habit(row) -> Habit:
        return Habit(
            id=row.id,
            name=row.name,
            category=row.category,
            created_at=_aware(row.created_at),
            archived=bool(row.archived),
        )

    def load_habits(self, user_id: str, include_archived: bool = False) -> List[Habit]:
        query = select(habits).where(habits.c.user_id == user_id)
        if not include_archived:
            query = query.where(habits.c.archived.is_(False))
        with get_db_session() as session:
            rows = session.execute(query.order_by(habits.c.created_at.asc())).all()
        return [self._habit(r) for r in rows]

    def get_habit(self, user_id: str, habit_id: str) -> Optional[Habit]:
        with get_db_session() as session:
            row = session.execute(
                select(habits).where(and_(habits.c.user_id == user_id, habits.c.id == habit_id))
            ).first()
        return self._habit(row) if row else None

    def save_habit(self, user_id: str, habit: Habit) -> Habit:
        with get_db_session() as session:
            _upsert(
                session,
                habits,
                and_(habits.c.user_id == user_id, habits.c.id == habit.id),
                {
                    "id": habit.id,
                    "user_id": user_id,
                    "name": habit.name,
                    "category": habit.category,
                    "archived": habit.archived,
                    "created_at": habit.created_at,
                },
            )
        return habit

    def load_completions(self, user_id: str, start: str, end: str) -> List[HabitCompletion]:
        with get_db_session() as session:
            rows = session.execute(
                select(habit_completions)
                .where(
                    and_(
                        habit_completions.c.user_id == user_id,
                        habit_completions.c.date >= start,
                        habit_completions.c.date <= end,
                    )
                )
                .order_by(habit_completions.c.date.asc(), habit_completions.c.habit_id.asc())
            ).all()
        return [
            HabitCompletion(habit_id=r.habit_id, date=r.date, completed=bool(r.completed), timestamp=_aware(r.timestamp))
            for r in rows
        ]

    def save_completion(self, user_id: str, completion: HabitCompletion) -> HabitCompletion:
        with get_db_session() as session:
            _upsert(
                session,
                habit_completions,
                and_(
                    habit_completions.c.user_id == user_id,
                    habit_completions.c.habit_id == completion.habit_id,
                    habit_completions.c.date == completion.date,
                ),
                {
                    "user_id": user_id,
                    "habit_id": completion.habit_id,
                    "date": completion.date,
                    "completed": completion.completed,
                    "timestamp": completion.timestamp,
                },
            )
        return completion

    # Singletons -------------------------------------------------------
    def load_level_state(self, user_id: str) -> Optional[LevelsGameState]:
        with get_db_session() as session:
            row = session.execute(select(level_states).where(level_states.c.user_id == user_id)).first()
        if row is None:
            return None
        return LevelsGameState(
            presence_level=row.presence_level,
            presence_level_start_date=row.presence_level_start_date,
            productivity_level=row.productivity_level,
            productivity_level_start_date=row.productivity_level_start_date,
        )

    def save_level_state(self, user_id: str, state: LevelsGameState) -> LevelsGameState:
        with get_db_session() as session:
            _upsert(
                session,
                level_states,
                level_states.c.user_id == user_id,
                {
                    "user_id": user_id,
                    "presence_level": state.presence_level,
                    "presence_level_start_date": state.presence_level_start_date,
                    "productivity_level": state.productivity_level,
                    "productivity_level_start_date": state.productivity_level_start_date,
                },
            )
        return state

    def load_settings(self, user_id: str) -> Optional[UserSettings]:
        with get_db_session() as session:
            row = session.execute(select(user_settings).where(user_settings.c.user_id == user_id)).first()
        if row is None:
            return None
        values = dict(row._mapping)
        values.pop("user_id")
        return UserSettings(**values)

    def save_settings(self, user_id: str, settings_obj: UserSettings) -> UserSettings:
        values = {"user_id": user_id, **settings_obj.model_dump()}
        with get_db_session() as session:
            _upsert(session, user_settings, user_settings.c.user_id == user_id, values)
        return settings_obj
