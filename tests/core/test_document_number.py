from sqlalchemy.ext.asyncio import AsyncSession

from src.core.documents.number_generator import DocumentNumberGenerator, generate_student_id


class TestDocumentNumberGenerator:
    """Tests for document number generator."""

    async def test_generate_first_number(self, db_session: AsyncSession):
        """Test generating first document number."""
        number = await DocumentNumberGenerator(db_session).generate("PRETECH", year=2026)
        assert number == "PRETECH-2026-0001"

    async def test_generate_sequential_numbers(self, db_session: AsyncSession):
        """Test generating sequential document numbers."""
        generator = DocumentNumberGenerator(db_session)
        num1 = await generator.generate("PRETECH", year=2026)
        num2 = await generator.generate("PRETECH", year=2026)
        num3 = await generator.generate("PRETECH", year=2026)

        assert [num1, num2, num3] == [
            "PRETECH-2026-0001",
            "PRETECH-2026-0002",
            "PRETECH-2026-0003",
        ]

    async def test_different_years(self, db_session: AsyncSession):
        """The sequence restarts every calendar year."""
        generator = DocumentNumberGenerator(db_session)
        num_2026 = await generator.generate("PRETECH", year=2026)
        num_2027 = await generator.generate("PRETECH", year=2027)
        num_2026_2 = await generator.generate("PRETECH", year=2026)

        assert num_2026 == "PRETECH-2026-0001"
        assert num_2027 == "PRETECH-2027-0001"
        assert num_2026_2 == "PRETECH-2026-0002"

    async def test_format_with_leading_zeros(self, db_session: AsyncSession):
        """Test that numbers are padded with leading zeros."""
        generator = DocumentNumberGenerator(db_session)
        for _ in range(41):
            await generator.generate("PRETECH", year=2026)

        assert await generator.generate("PRETECH", year=2026) == "PRETECH-2026-0042"

    async def test_student_id_uses_configured_prefix(self, db_session: AsyncSession):
        student_id = await generate_student_id(db_session, year=2026)
        assert student_id == "PRETECH-2026-0001"
