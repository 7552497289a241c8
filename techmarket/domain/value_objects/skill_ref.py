"""
Skill reference value object.

Technician skill payloads arrive in several shapes: objects keyed with
``skillId``/``domainId``/``skill``, snake_case variants, or bare strings.
``SkillRef.parse`` normalizes all of them at the boundary so the matcher
only ever sees one type.
"""

import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from techmarket.config.logging import get_logger

logger = get_logger(__name__)

_SKILL_ID_KEYS = ("skillId", "skill_id", "id")
_DOMAIN_ID_KEYS = ("domainId", "serviceDomainId", "domain_id", "service_domain_id")
_TITLE_KEYS = ("skill", "title", "name")
_DOMAIN_TITLE_KEYS = ("domain", "serviceDomain", "domain_title", "service_domain")


def _first_text(payload: dict, keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = payload.get(key)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


@dataclass(frozen=True)
class SkillRef:
    """A single technician skill, optionally tagged with its domain."""

    skill_id: Optional[str] = None
    domain_id: Optional[str] = None
    title: Optional[str] = None
    domain_title: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any) -> Optional["SkillRef"]:
        """Normalize one raw skill entry, or None if it carries nothing usable."""
        if isinstance(raw, SkillRef):
            return raw
        if isinstance(raw, str):
            title = raw.strip()
            return cls(title=title) if title else None
        if isinstance(raw, dict):
            ref = cls(
                skill_id=_first_text(raw, _SKILL_ID_KEYS),
                domain_id=_first_text(raw, _DOMAIN_ID_KEYS),
                title=_first_text(raw, _TITLE_KEYS),
                domain_title=_first_text(raw, _DOMAIN_TITLE_KEYS),
            )
            if ref.is_empty():
                return None
            return ref
        return None

    def is_empty(self) -> bool:
        return not any((self.skill_id, self.domain_id, self.title, self.domain_title))

    def to_dict(self) -> dict:
        """Convert to dictionary, omitting empty fields."""
        data = {
            "skillId": self.skill_id,
            "domainId": self.domain_id,
            "skill": self.title,
            "domain": self.domain_title,
        }
        return {key: value for key, value in data.items() if value is not None}


def parse_skill_refs(raw: Any) -> List[SkillRef]:
    """Parse a skill-set payload (list, JSON string or None) into SkillRefs.

    Entries that cannot be interpreted are dropped rather than raising.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            # not JSON, so a single bare skill title
            raw = [raw]
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        logger.warning("Unsupported skill payload shape", payload_type=type(raw).__name__)
        return []

    refs = []
    for entry in raw:
        ref = SkillRef.parse(entry)
        if ref is None:
            logger.debug("Ignoring unusable skill entry", entry=repr(entry)[:100])
            continue
        refs.append(ref)
    return refs


def parse_category_labels(raw: Optional[Iterable[Any]]) -> List[str]:
    """Normalize service-category labels to non-empty stripped strings."""
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raw = [raw]
        if not isinstance(raw, list):
            raw = [raw]
    if not isinstance(raw, (list, tuple, set)):
        return []
    labels = []
    for label in raw:
        if isinstance(label, str) and label.strip():
            labels.append(label.strip())
    return labels
