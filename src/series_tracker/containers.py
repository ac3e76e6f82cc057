"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from series_tracker.adapters.poiskkino_client import HttpxPoiskKinoClient
from series_tracker.adapters.supabase_admin_repository import SupabaseAdminRepository
from series_tracker.adapters.supabase_series_repository import (
    SupabaseSeriesRepository,
)
from series_tracker.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from series_tracker.adapters.supabase_user_repository import SupabaseUserRepository
from series_tracker.config import Settings
from series_tracker.services.admin import AdminService
from series_tracker.services.cache import InMemoryCache
from series_tracker.services.catalog import CatalogService
from series_tracker.services.series import SeriesService
from series_tracker.services.sessions import SessionService
from series_tracker.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    session_service: SessionService
    series_service: SeriesService
    catalog_service: CatalogService
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    session_repository = SupabaseSessionRepository(supabase_client)
    series_repository = SupabaseSeriesRepository(supabase_client)
    admin_repository = SupabaseAdminRepository(supabase_client)

    user_service = UserService(user_repository)
    session_service = SessionService(
        user_service=user_service,
        session_repository=session_repository,
        signing_secret=resolved_settings.telegram_bot_token,
        ttl=timedelta(days=resolved_settings.session_ttl_days),
    )
    series_service = SeriesService(series_repository)
    catalog_client = HttpxPoiskKinoClient.create(
        api_key=resolved_settings.poiskkino_api_key,
        base_url=resolved_settings.poiskkino_base_url,
    )
    catalog_service = CatalogService(
        client=catalog_client,
        repository=series_repository,
        cache=InMemoryCache(),
    )
    admin_service = AdminService(admin_repository)

    async def close_resources() -> None:
        await catalog_client.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        session_service=session_service,
        series_service=series_service,
        catalog_service=catalog_service,
        admin_service=admin_service,
        close_resources=close_resources,
    )
