"""
Treasury configuration provider.

Reads and updates the active treasury window. The daily budget is always
derived from allocation and duration.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.treasury_config import TreasuryConfig
from app.repositories.treasury_config_repository import TreasuryConfigRepository
from app.services.rewards.types import TreasuryWindow
from app.utils.datetime_utils import ensure_utc
from app.utils.exceptions import UpstreamDataError, ValidationError


def window_from_model(config: TreasuryConfig) -> TreasuryWindow:
    """Convert a stored configuration to a window."""
    return TreasuryWindow(
        total_allocation=Decimal(config.total_allocation),
        duration_days=config.program_duration_days,
        start_date=ensure_utc(config.program_start_date),
        end_date=ensure_utc(config.program_end_date),
    )


class DatabaseTreasuryConfigProvider:
    """TreasuryConfigProvider over the treasury_config table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def current_window(self) -> TreasuryWindow:
        """
        Active treasury window.

        Raises:
            UpstreamDataError: If no configuration is active
        """
        async with self.session_maker() as session:
            config = await TreasuryConfigRepository(session).get_active()
        if config is None:
            raise UpstreamDataError("No active treasury configuration")
        return window_from_model(config)

    async def update_config(
        self,
        total_allocation: Decimal,
        program_duration_days: int,
        program_start_date: datetime,
        updated_by: str | None = None,
    ) -> TreasuryWindow:
        """
        Replace the active configuration.

        The end date is start + duration.

        Args:
            total_allocation: Treasury allocation (tokens)
            program_duration_days: Program length in days
            program_start_date: Program start (aware UTC)
            updated_by: Operator identifier for the audit trail

        Returns:
            New active window

        Raises:
            ValidationError: If allocation or duration is not positive
        """
        if total_allocation <= 0:
            raise ValidationError("Total allocation must be positive")
        if program_duration_days <= 0:
            raise ValidationError("Program duration must be positive")

        end_date = program_start_date + timedelta(days=program_duration_days)

        async with self.session_maker() as session:
            repo = TreasuryConfigRepository(session)
            await repo.deactivate_all()
            config = await repo.create(
                total_allocation=total_allocation,
                program_duration_days=program_duration_days,
                program_start_date=program_start_date,
                program_end_date=end_date,
                is_active=True,
                updated_by=updated_by,
            )
            await session.commit()

        logger.info(
            f"Treasury configuration updated: {total_allocation} over "
            f"{program_duration_days} days by {updated_by or 'system'}"
        )
        return window_from_model(config)
