from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentNode(BaseModel):
    """One stored document: its serialized fields and its subcollections.

    The document id is the key under which the node sits in its parent mapping.
    """
    model_config = ConfigDict(populate_by_name=True)

    data: dict[str, Any] = Field(default_factory=dict, alias="_data")
    subcollections: dict[str, dict[str, DocumentNode]] = Field(
        default_factory=dict, alias="_subcollections"
    )


class BackupMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    environment: str
    project_id: str | None = Field(default=None, alias="projectId")


class BackupFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    metadata: BackupMetadata = Field(alias="_metadata")
    collections: dict[str, dict[str, DocumentNode]] = Field(
        default_factory=dict, alias="_collections"
    )


DocumentNode.model_rebuild()
