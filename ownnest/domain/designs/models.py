"""Domain model for design records."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ownnest.db import models as orm

from .exceptions import DesignValidationError


@dataclass(frozen=True, slots=True)
class DesignRecord:
    owner_id: str
    title: str
    color: str
    fabric: str
    buttons: str
    image_url: str

    @classmethod
    def create(
        cls,
        *,
        owner_id: Any,
        title: Any,
        color: Any,
        fabric: Any,
        buttons: Any,
        image_url: Any,
    ) -> "DesignRecord":
        """Trim every field and reject the record if any is blank."""
        values = {
            "owner_id": owner_id,
            "title": title,
            "color": color,
            "fabric": fabric,
            "buttons": buttons,
            "image_url": image_url,
        }
        cleaned = {name: value.strip() if isinstance(value, str) else "" for name, value in values.items()}
        missing = [name for name, value in cleaned.items() if not value]
        if missing:
            raise DesignValidationError(missing)
        return cls(**cleaned)

    @classmethod
    def from_orm(cls, instance: orm.Design) -> "DesignRecord":
        return cls.create(
            owner_id=instance.owner_id,
            title=instance.title,
            color=instance.color,
            fabric=instance.fabric,
            buttons=instance.buttons,
            image_url=instance.image_url,
        )

    def as_dict(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
