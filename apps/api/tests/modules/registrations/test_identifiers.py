"""
Tests for registration code generation.

Covers prefix normalization, code formatting, per-bucket sequencing and
uniqueness under concurrent intake.
"""

import asyncio

import pytest

from app.modules.registrations.identifiers import (
    build_bucket,
    format_code,
    generate,
    next_counter_value,
    normalize_prefix,
    reserve,
)


class TestNormalizePrefix:
    """Tests for surname prefix derivation."""

    def test_takes_first_three_letters_uppercased(self):
        assert normalize_prefix("Levy") == "LEV"

    def test_pads_short_names_with_x(self):
        assert normalize_prefix("Li") == "LIX"

    def test_strips_accents(self):
        assert normalize_prefix("Événement") == "EVE"

    def test_ignores_non_letters(self):
        assert normalize_prefix("d'Ôrsay-Ben") == "DOR"
        assert normalize_prefix("  o'neil") == "ONE"

    def test_name_without_letters_is_all_padding(self):
        assert normalize_prefix("123 - !") == "XXX"
        assert normalize_prefix("") == "XXX"
        assert normalize_prefix(None) == "XXX"

    def test_non_latin_letters_are_dropped(self):
        assert normalize_prefix("כהן") == "XXX"


class TestFormatting:
    def test_bucket_key(self):
        assert build_bucket(2026, "LEV") == "2026_LEV"

    def test_counter_is_zero_padded(self):
        assert format_code(2026, "LEV", 1) == "2026_LEV_001"
        assert format_code(2026, "LEV", 42) == "2026_LEV_042"

    def test_counter_grows_past_three_digits(self):
        assert format_code(2026, "LEV", 1000) == "2026_LEV_1000"


class TestCounter:
    """Store-level tests for the atomic counter."""

    @pytest.mark.asyncio
    async def test_sequence_starts_at_one_and_increments(self, db):
        codes = [await generate(db, "Levy", 2026) for _ in range(3)]
        await db.commit()

        assert codes == ["2026_LEV_001", "2026_LEV_002", "2026_LEV_003"]

    @pytest.mark.asyncio
    async def test_buckets_are_independent(self, db):
        assert await generate(db, "Levy", 2026) == "2026_LEV_001"
        assert await generate(db, "Cohen", 2026) == "2026_COH_001"
        assert await generate(db, "Levy", 2027) == "2027_LEV_001"
        assert await generate(db, "Lévinas", 2026) == "2026_LEV_002"
        await db.commit()

    @pytest.mark.asyncio
    async def test_rolled_back_increment_is_not_kept(self, db):
        await next_counter_value(db, "2026_LEV")
        await db.rollback()

        assert await next_counter_value(db, "2026_LEV") == 1

    @pytest.mark.asyncio
    async def test_concurrent_generation_yields_unique_codes(self, session_factory):
        """Parallel sessions drawing from one bucket never share a number."""

        async def issue() -> str:
            async with session_factory() as session:
                code = await generate(session, "Levy", 2026)
                await session.commit()
                return code

        codes = await asyncio.gather(*(issue() for _ in range(10)))

        assert len(set(codes)) == 10
        assert sorted(codes) == [f"2026_LEV_{n:03d}" for n in range(1, 11)]

    @pytest.mark.asyncio
    async def test_reserved_code_survives_caller_rollback(self, db):
        assert await reserve(db, "Levy", 2026) == "2026_LEV_001"
        await db.rollback()

        assert await reserve(db, "Levy", 2026) == "2026_LEV_002"
