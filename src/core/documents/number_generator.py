from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.documents.models import DocumentSequence


class DocumentNumberGenerator:
    """
    Generates sequential numbers in format: PREFIX-YYYY-NNNN

    Examples:
        PRETECH-2026-0001
        PRETECH-2026-0042
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def generate(self, prefix: str, year: int | None = None, width: int = 4) -> str:
        """
        Generate next number for given prefix and year.

        Uses SELECT FOR UPDATE so two admissions submitted at once cannot get
        the same number. The sequence restarts at 1 every calendar year.
        """
        if year is None:
            year = datetime.now().year

        stmt = (
            select(DocumentSequence)
            .where(DocumentSequence.prefix == prefix, DocumentSequence.year == year)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        sequence = result.scalar_one_or_none()

        if sequence is None:
            sequence = DocumentSequence(prefix=prefix, year=year, last_number=0)
            self.session.add(sequence)
            await self.session.flush()

            # Re-fetch with lock
            result = await self.session.execute(stmt)
            sequence = result.scalar_one()

        sequence.last_number += 1
        await self.session.flush()

        return f"{prefix}-{year}-{sequence.last_number:0{width}d}"


async def generate_student_id(session: AsyncSession, year: int | None = None) -> str:
    """Next student id for the institute, e.g. PRETECH-2026-0007."""
    return await DocumentNumberGenerator(session).generate(settings.student_id_prefix, year)
