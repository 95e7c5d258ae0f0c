"""
Write fetched records into per-entity tables
"""

from typing import List, Sequence
from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from core.exceptions import WriteError
from ingestion.loaders.schema import SchemaProvisioner
from models.tables import qa_tables, repo_tables
from schemas.records import QAThread, RepoItem

logger = logging.getLogger(__name__)


class PostgresLoader:
    """
    Load records into one store.

    Ensures:
    - Tables exist before the first insert
    - Questions and answers are insert-if-absent (ON CONFLICT DO NOTHING)
    - Repository items are appended unconditionally
    - Every row is committed as soon as it is written; a failure stops the
      batch but leaves earlier rows in place
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.provisioner = SchemaProvisioner(db_session)

    def _insert(self, table: Table):
        """
        Dialect insert that supports ON CONFLICT.

        Production stores are PostgreSQL; the SQLite branch serves the
        in-memory SQLite stores the test suite runs against.
        """
        if self.db.bind.dialect.name == "sqlite":
            return sqlite_insert(table)
        return pg_insert(table)

    async def write_qa_data(self, threads: Sequence[QAThread], entity_name: str) -> int:
        """
        Insert questions and their answers for an entity.

        Args:
            threads: Threads returned by the Stack Overflow client
            entity_name: Tracked entity (tag) the threads belong to

        Returns:
            Number of insert statements executed (conflicts included)

        Raises:
            SchemaError: If the tables cannot be provisioned
            WriteError: On the first insert that fails for a reason other
                than an existing key
        """
        await self.provisioner.ensure_qa_schema(entity_name)
        tables = qa_tables(entity_name)

        statements = 0

        for thread in threads:
            stmt = self._insert(tables.questions).values(
                question_id=thread.question_id,
                title=thread.title,
                body=thread.body,
                link=thread.link,
            ).on_conflict_do_nothing(index_elements=["question_id"])

            await self._execute(
                stmt,
                f"Failed to insert question {thread.question_id}",
                {"table_name": tables.questions.name, "question_id": thread.question_id},
            )
            statements += 1

            for answer in thread.answers:
                stmt = self._insert(tables.answers).values(
                    answer_id=answer.answer_id,
                    question_id=thread.question_id,
                    body=answer.body,
                ).on_conflict_do_nothing(index_elements=["answer_id"])

                await self._execute(
                    stmt,
                    f"Failed to insert answer {answer.answer_id} for question {thread.question_id}",
                    {
                        "table_name": tables.answers.name,
                        "question_id": thread.question_id,
                        "answer_id": answer.answer_id,
                    },
                )
                statements += 1

        logger.info(f"Wrote {len(threads)} threads ({statements} statements) for {entity_name}")
        return statements

    async def write_repo_data(self, items: Sequence[RepoItem], entity_name: str) -> int:
        """
        Append repository items for an entity.

        Every call adds new rows; items carry no key to de-duplicate on.

        Returns:
            Number of rows inserted

        Raises:
            SchemaError: If the table cannot be provisioned
            WriteError: On the first failed insert
        """
        await self.provisioner.ensure_repo_schema(entity_name)
        table = repo_tables(entity_name).items

        loaded_count = 0

        for index, item in enumerate(items):
            labels: List[str] = [item.kind.value]
            stmt = table.insert().values(
                title=item.body,
                body=item.body,
                labels=labels,
            )

            await self._execute(
                stmt,
                f"Failed to insert {item.kind.value.lower()} into {table.name}",
                {"table_name": table.name, "item_index": index, "kind": item.kind.value},
            )
            loaded_count += 1

        logger.info(f"Loaded {loaded_count} items into {table.name}")
        return loaded_count

    async def _execute(self, stmt, message: str, context: dict) -> None:
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise WriteError(message, context=context, original_exception=e)
