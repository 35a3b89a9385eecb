"""Wiring of sessions, repositories and services into route handlers."""

from fastapi import Depends
from sqlalchemy.orm import Session

from src.core.config import Settings, get_settings
from src.db.database import get_db
from src.db.sql_repository import SQLMatchRepository, SQLStatsRepository, SQLUserRepository
from src.services.match_service import MatchService
from src.services.notifications import Notifier, build_notifier
from src.services.stats_service import StatsService


def get_notifier(settings: Settings = Depends(get_settings)) -> Notifier:
    return build_notifier(
        settings.app_base_url,
        email_enabled=settings.email_notifications_enabled,
        push_enabled=settings.push_notifications_enabled,
    )


def get_stats_service(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> StatsService:
    return StatsService(
        SQLUserRepository(db),
        SQLStatsRepository(db),
        leaderboard_size=settings.leaderboard_size,
    )


def get_match_service(
    db: Session = Depends(get_db),
    stats_service: StatsService = Depends(get_stats_service),
    notifier: Notifier = Depends(get_notifier),
) -> MatchService:
    return MatchService(SQLMatchRepository(db), stats_service, notifier)
