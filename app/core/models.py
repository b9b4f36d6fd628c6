"""
Abstract base models shared by every domain app.

Base Classes:
    BaseModel: created_at / updated_at timestamps
    UUIDPrimaryKeyMixin: UUID primary key for records exposed in URLs

Usage:
    from core.models import BaseModel, UUIDPrimaryKeyMixin

    class Call(UUIDPrimaryKeyMixin, BaseModel):
        room_name = models.CharField(max_length=100)

Note:
    List mixins before BaseModel in the bases so that Meta inheritance
    picks up BaseModel's ordering.
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a random UUID as the primary key.

    Calls, messages and meeting records are referenced by clients
    (room links, notification reference ids), so their ids must not be
    guessable or reveal record counts.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class BaseModel(models.Model):
    """
    Abstract base model with creation and modification timestamps.

    Fields:
        created_at: Set once when the row is inserted
        updated_at: Refreshed on every save()

    Note:
        Callers using save(update_fields=[...]) must include "updated_at"
        in the list, otherwise auto_now is not written.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
