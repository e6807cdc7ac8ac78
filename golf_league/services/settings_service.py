"""
Settings service for runtime configuration with database overrides.

Checks the settings table first, then falls back to environment variables.
"""

import os
import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from dotenv import load_dotenv

from golf_league.database.models import Setting

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


async def get_setting(session: AsyncSession, key: str) -> Optional[str]:
    """Read a raw setting value from the database."""
    result = await session.execute(select(Setting.value).where(Setting.key == key))
    return result.scalar_one_or_none()


async def set_setting(session: AsyncSession, key: str, value: str) -> None:
    """Create or overwrite a setting value."""
    result = await session.execute(select(Setting).where(Setting.key == key))
    setting = result.scalar_one_or_none()
    if setting is None:
        session.add(Setting(key=key, value=value))
    else:
        setting.value = value
    await session.commit()


async def get_setting_with_fallback(
    session: Optional[AsyncSession],
    key: str,
    env_var: Optional[str] = None,
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Get a setting value from database first, then env var, then default.

    Args:
        session: Database session (optional)
        key: Setting key in database
        env_var: Environment variable name to fall back to
        default: Default value if neither database nor env var is set

    Returns:
        Setting value as string, or None
    """
    if session is not None:
        try:
            value = await get_setting(session, key)
            if value is not None:
                return value
        except Exception as e:
            logger.warning(f"Error reading setting {key} from database: {e}")

    if env_var:
        value = os.getenv(env_var)
        if value is not None:
            return value

    return default


async def get_bool_setting(
    session: Optional[AsyncSession],
    key: str,
    env_var: Optional[str] = None,
    default: bool = True,
) -> bool:
    """
    Get a boolean setting value.

    Returns:
        bool: Setting value as boolean
    """
    value = await get_setting_with_fallback(session, key, env_var, None)

    if value is None:
        return default

    return value.lower() in ("true", "1", "yes")
