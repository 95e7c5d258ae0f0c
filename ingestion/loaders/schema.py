"""
Create per-entity destination tables on demand
"""

from sqlalchemy import MetaData
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from core.exceptions import SchemaError
from models.tables import qa_tables, repo_tables

logger = logging.getLogger(__name__)


class SchemaProvisioner:
    """
    Ensure an entity's tables exist before writing to them.

    Uses CREATE TABLE only for tables that are missing, so it is safe to call
    before every write. Existing tables are never altered.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def ensure_qa_schema(self, entity_name: str) -> None:
        """
        Ensure so_<entity>_questions and so_<entity>_answers exist.

        Raises:
            IdentifierError: If the entity name is unsafe (no SQL is issued)
            SchemaError: If the DDL fails
        """
        tables = qa_tables(entity_name)
        await self._create_missing(tables.metadata, entity_name)

    async def ensure_repo_schema(self, entity_name: str) -> None:
        """
        Ensure github_<entity> exists.

        Raises:
            IdentifierError: If the entity name is unsafe (no SQL is issued)
            SchemaError: If the DDL fails
        """
        tables = repo_tables(entity_name)
        await self._create_missing(tables.metadata, entity_name)

    async def _create_missing(self, metadata: MetaData, entity_name: str) -> None:
        table_names = list(metadata.tables)
        try:
            conn = await self.db.connection()
            await conn.run_sync(metadata.create_all, checkfirst=True)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SchemaError(
                f"Failed to create tables for {entity_name}",
                context={"entity_name": entity_name, "tables": table_names},
                original_exception=e
            )

        logger.debug(f"Schema ready for {entity_name}: {', '.join(table_names)}")
