"""
Pydantic schemas for source payloads, ingested records and the roster.

Schemas:
    records: Stack Exchange / GitHub payload models and the records written
             to the stores (QAThread, QAReply, RepoItem)
    entities: TrackedEntity and roster construction

Validation:
    Payload models reject bodies that do not match the shape the source
    clients expect; the clients turn the resulting ValidationError into
    a ResponseFormatError.
"""
