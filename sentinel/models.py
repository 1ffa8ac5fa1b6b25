"""
Identity data models.

Identities are pydantic models that keep unknown fields (``extra="allow"``)
so records written by newer versions survive a load/save or import/export
round trip. Wire names are camelCase (``hiddenDescription``), matching the
backup file format.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sentinel import tags as tagging


EMPTY_SLOT = "EMPTY_SLOT"
VAULT_SIZE = 10


def empty_vault() -> list[str]:
    """A fresh vault: VAULT_SIZE sentinel slots."""
    return [EMPTY_SLOT] * VAULT_SIZE


def new_id() -> str:
    return str(uuid.uuid4())


class Identity(BaseModel):
    """A TOTP identity with its recovery vault and metadata."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default_factory=new_id, frozen=True)
    name: str = ""
    secret: str = ""
    vault: list[str] = Field(default_factory=empty_vault)
    note: str = ""
    hidden_description: str = Field(default="", alias="hiddenDescription")
    tags: list[str] = Field(default_factory=list)

    @field_validator("vault")
    @classmethod
    def _vault_shape(cls, value: list[str]) -> list[str]:
        if len(value) != VAULT_SIZE:
            raise ValueError(f"vault must have exactly {VAULT_SIZE} slots, got {len(value)}")
        if any(not slot for slot in value):
            raise ValueError(f"vault slots must be non-empty; use {EMPTY_SLOT}")
        return value

    def to_dict(self) -> dict[str, Any]:
        """Serialize with wire names, extra fields included."""
        return self.model_dump(by_alias=True)

    def filled_slots(self) -> int:
        return sum(1 for slot in self.vault if slot != EMPTY_SLOT)

    @classmethod
    def from_raw(cls, item: dict[str, Any]) -> Identity:
        """Build an identity from loosely-shaped stored or imported data.

        Missing or wrong-shaped fields are defaulted rather than rejected:
        a vault that is not exactly VAULT_SIZE long becomes all sentinels,
        non-list tags become empty, absent text fields become "". Fields
        this model does not know are carried through untouched.
        """
        data = dict(item)

        if not isinstance(data.get("id"), str) or not data["id"]:
            data["id"] = new_id()

        for key in ("name", "secret", "note", "hiddenDescription"):
            data[key] = _text(data.get(key))

        vault = data.get("vault")
        if isinstance(vault, list) and len(vault) == VAULT_SIZE:
            data["vault"] = [_slot(v) for v in vault]
        else:
            data["vault"] = empty_vault()

        raw_tags = data.get("tags")
        if isinstance(raw_tags, list):
            data["tags"] = tagging.dedupe(t for t in raw_tags if isinstance(t, str))
        else:
            data["tags"] = []

        return cls.model_validate(data)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _slot(value: Any) -> str:
    text = _text(value)
    return text if text else EMPTY_SLOT


@dataclass
class IdentityDraft:
    """Creation form state: fields plus the pending tag set."""

    name: str = ""
    secret: str = ""
    note: str = ""
    hidden_description: str = ""
    tags: list[str] = field(default_factory=list)

    def toggle_tag(self, tag: str) -> list[str]:
        self.tags = tagging.toggle(self.tags, tag)
        return self.tags

    def clear(self) -> None:
        self.name = ""
        self.secret = ""
        self.note = ""
        self.hidden_description = ""
        self.tags = []
