"""
Registration Identifiers (NIU)

Format: ``{year}_{PREFIX}_{NNN}``, e.g. ``2026_LEV_001``.

PREFIX is the first three letters of the surname, upper-cased with accents
removed and padded with ``X``. NNN is a per ``{year}_{PREFIX}`` sequence kept
in ``registration_counters`` and incremented by a single upsert statement,
so concurrent intakes can never draw the same number.
"""

import logging
import re
import unicodedata

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.registrations.models import RegistrationCounter
from app.modules.shared import utcnow

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 3
PAD_CHAR = "X"
COUNTER_WIDTH = 3

_NON_LETTERS = re.compile(r"[^A-Z]")


def normalize_prefix(name: str | None) -> str:
    """
    Derive the three-letter prefix from a surname.

    >>> normalize_prefix("Événement")
    'EVE'
    >>> normalize_prefix("Li")
    'LIX'
    """
    decomposed = unicodedata.normalize("NFD", (name or "").upper())
    without_marks = "".join(c for c in decomposed if not unicodedata.combining(c))
    letters = _NON_LETTERS.sub("", without_marks)
    return letters[:PREFIX_LENGTH].ljust(PREFIX_LENGTH, PAD_CHAR)


def build_bucket(session_year: int, prefix: str) -> str:
    return f"{session_year}_{prefix}"


def format_code(session_year: int, prefix: str, counter: int) -> str:
    return f"{session_year}_{prefix}_{counter:0{COUNTER_WIDTH}d}"


def _insert_for(db: AsyncSession):
    """Dialect-specific INSERT construct supporting ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Counter upsert not supported on {dialect}")


async def next_counter_value(db: AsyncSession, bucket: str) -> int:
    """
    Atomically increment the counter for ``bucket`` and return the new value.

    The first call for a bucket returns 1. Runs inside the caller's
    transaction.
    """
    insert = _insert_for(db)
    now = utcnow()
    stmt = (
        insert(RegistrationCounter)
        .values(bucket=bucket, value=1, updated_at=now)
        .on_conflict_do_update(
            index_elements=[RegistrationCounter.bucket],
            set_={"value": RegistrationCounter.value + 1, "updated_at": now},
        )
        .returning(RegistrationCounter.value)
    )
    result = await db.execute(stmt)
    return result.scalar_one()


async def generate(db: AsyncSession, name: str | None, session_year: int) -> str:
    """
    Issue the next registration code for a surname and session year.

    A surname with no letters gets the ``XXX`` prefix.
    """
    prefix = normalize_prefix(name)
    counter = await next_counter_value(db, build_bucket(session_year, prefix))
    code = format_code(session_year, prefix, counter)
    logger.debug(f"Issued registration code {code}")
    return code


async def reserve(db: AsyncSession, name: str | None, session_year: int) -> str:
    """
    Issue a code in its own committed transaction, on the engine behind ``db``.

    A drawn number is never handed out again, even when the caller's insert
    then fails, so a retry always gets a fresh code. Gaps in a sequence are
    expected.
    """
    async with AsyncSession(db.bind, expire_on_commit=False) as counter_db:
        try:
            code = await generate(counter_db, name, session_year)
            await counter_db.commit()
        except Exception:
            await counter_db.rollback()
            raise
    return code
