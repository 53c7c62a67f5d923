"""
Abstract base model shared by the domain apps.

    class Appointment(UUIDPrimaryKeyMixin, BaseModel):
        ...

List mixins (``core.model_mixins``) before BaseModel.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Adds ``created_at`` and ``updated_at`` and orders newest first.

    ``updated_at`` only moves on save(); QuerySet.update() callers set it
    themselves (see ``payments.locks.compare_and_set``).
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the row was inserted",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the row was last saved",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
