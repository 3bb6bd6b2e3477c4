from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import copy

# Top-level keys written by to_dict(); anything else in a stored record is kept in Memory.extra
_KNOWN_KEYS = {
    "memoryId", "version", "createdAt", "lastUpdated", "style_profile",
    "glossary", "context_summary", "last_edited_tail", "usage_stats",
}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Memory section '{name}' must be an object, got {type(value).__name__}")
    return value


def _int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Memory field '{name}' must be a number, got {value!r}")


def _text(value: Any) -> str:
    return str(value) if value else ""


@dataclass
class StyleProfile:
    tone: str = ""
    formality: str = ""
    notes: str = ""


@dataclass
class Glossary:
    term_map: Dict[str, str] = field(default_factory=dict)
    last_modified: str = field(default_factory=utc_now)


@dataclass
class ContextSummary:
    short: str = ""
    long: str = ""


@dataclass
class EditedTail:
    text: str = ""
    length_chars: int = 0


@dataclass
class UsageStats:
    total_tokens_used: int = 0
    executions: int = 0


@dataclass
class Memory:
    """Continuity record for one memory key, carried across chunks and stages."""
    version: int = 1
    created_at: str = field(default_factory=utc_now)
    last_updated: str = field(default_factory=utc_now)
    style_profile: StyleProfile = field(default_factory=StyleProfile)
    glossary: Glossary = field(default_factory=Glossary)
    context_summary: ContextSummary = field(default_factory=ContextSummary)
    last_edited_tail: EditedTail = field(default_factory=EditedTail)
    usage_stats: UsageStats = field(default_factory=UsageStats)
    memory_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def set_tail(self, tail: str) -> None:
        self.last_edited_tail = EditedTail(text=tail, length_chars=len(tail))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = copy.deepcopy(self.extra)
        if self.memory_id is not None:
            out["memoryId"] = self.memory_id
        out.update({
            "version": self.version,
            "createdAt": self.created_at,
            "lastUpdated": self.last_updated,
            "style_profile": {
                "tone": self.style_profile.tone,
                "formality": self.style_profile.formality,
                "notes": self.style_profile.notes,
            },
            "glossary": {
                "term_map": dict(self.glossary.term_map),
                "lastModified": self.glossary.last_modified,
            },
            "context_summary": {
                "short": self.context_summary.short,
                "long": self.context_summary.long,
            },
            "last_edited_tail": {
                "text": self.last_edited_tail.text,
                "length_chars": self.last_edited_tail.length_chars,
            },
            "usage_stats": {
                "totalTokensUsed": self.usage_stats.total_tokens_used,
                "executions": self.usage_stats.executions,
            },
        })
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Memory":
        """
        Build a record from its stored JSON form. Missing sections get defaults.

        Raises:
            ValueError: if the record or one of its sections is not an object,
                or a numeric field is not a number
        """
        if not isinstance(data, dict):
            raise ValueError(f"Memory record must be an object, got {type(data).__name__}")
        style = _section(data, "style_profile")
        glossary = _section(data, "glossary")
        summary = _section(data, "context_summary")
        tail = _section(data, "last_edited_tail")
        usage = _section(data, "usage_stats")
        term_map = glossary.get("term_map") or {}
        if not isinstance(term_map, dict):
            raise ValueError(f"Memory glossary term_map must be an object, got {type(term_map).__name__}")
        now = utc_now()

        tail_text = _text(tail.get("text"))
        return cls(
            version=_int(data.get("version") or 1, "version"),
            created_at=data.get("createdAt") or now,
            last_updated=data.get("lastUpdated") or now,
            style_profile=StyleProfile(
                tone=_text(style.get("tone")),
                formality=_text(style.get("formality")),
                notes=_text(style.get("notes")),
            ),
            glossary=Glossary(
                term_map={str(k): str(v) for k, v in term_map.items()},
                last_modified=glossary.get("lastModified") or now,
            ),
            context_summary=ContextSummary(
                short=_text(summary.get("short")),
                long=_text(summary.get("long")),
            ),
            last_edited_tail=EditedTail(
                text=tail_text,
                length_chars=_int(tail.get("length_chars", len(tail_text)) or 0, "length_chars"),
            ),
            usage_stats=UsageStats(
                total_tokens_used=_int(usage.get("totalTokensUsed") or 0, "totalTokensUsed"),
                executions=_int(usage.get("executions") or 0, "executions"),
            ),
            memory_id=data.get("memoryId"),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _KNOWN_KEYS},
        )


def new_memory() -> Memory:
    """Fresh record for a key that has never been persisted."""
    return Memory()
