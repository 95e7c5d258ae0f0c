"""
Per-entity table definitions.

Each tracked entity gets its own table set, named from the entity's
sanitized token:

    so_<token>_questions   one row per question, keyed by question_id
    so_<token>_answers     one row per answer, keyed by answer_id, with a
                           foreign key to the questions table
    github_<token>         one row per issue or comment, no natural key

Tables are built with SQLAlchemy Core in a MetaData owned by the token, so
``create_all`` only ever touches that entity's tables.
"""

from functools import lru_cache
from typing import NamedTuple

from sqlalchemy import Column, ForeignKey, Integer, JSON, MetaData, Table, Text
from sqlalchemy.dialects.postgresql import ARRAY

from core.identifiers import table_token

# TEXT[] in PostgreSQL, JSON list on SQLite
LabelsType = ARRAY(Text).with_variant(JSON(), "sqlite")


class QATables(NamedTuple):
    metadata: MetaData
    questions: Table
    answers: Table


class RepoTables(NamedTuple):
    metadata: MetaData
    items: Table


@lru_cache(maxsize=None)
def qa_tables(entity_name: str) -> QATables:
    """Question/answer tables for an entity (raises IdentifierError)."""
    token = table_token(entity_name)
    metadata = MetaData()

    questions = Table(
        f"so_{token}_questions",
        metadata,
        Column("question_id", Integer, primary_key=True, autoincrement=False),
        Column("title", Text),
        Column("body", Text),
        Column("link", Text),
    )

    answers = Table(
        f"so_{token}_answers",
        metadata,
        Column("answer_id", Integer, primary_key=True, autoincrement=False),
        Column("question_id", Integer, ForeignKey(questions.c.question_id)),
        Column("body", Text),
    )

    return QATables(metadata, questions, answers)


@lru_cache(maxsize=None)
def repo_tables(entity_name: str) -> RepoTables:
    """Issue/comment table for an entity (raises IdentifierError)."""
    token = table_token(entity_name)
    metadata = MetaData()

    items = Table(
        f"github_{token}",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("title", Text),
        Column("body", Text),
        Column("labels", LabelsType),
    )

    return RepoTables(metadata, items)
