"""Creating, updating and suggesting contact groups.

Groups are returned to the caller as plain :class:`~contact_atlas.models.Group`
objects; storing them is the caller's concern.
"""
from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .detection import weighted_venue_score
from .models import Contact, Group, GroupType, NearbyEvent, unique_ids

LOGGER = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class GroupValidationError(ValueError):
    """Raised when group data is incomplete."""


class DuplicateGroupError(GroupValidationError):
    """Raised when a group with the same name already exists."""


class GroupNotFoundError(LookupError):
    """Raised when updating a group that does not exist."""


def generate_group_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"group_{int(time.time() * 1000)}_{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _existing_names(groups: Iterable[Group]) -> set:
    return {group.name.strip().lower() for group in groups}


def create_group(
    name: str,
    contact_ids: Sequence[str],
    *,
    group_type: GroupType | str = GroupType.CUSTOM,
    description: str = "",
    event_data: Optional[Dict[str, Any]] = None,
    existing: Iterable[Group] = (),
    auto_generated: bool = False,
    reason: Optional[str] = None,
) -> Group:
    """Validate input and build a new group ready to be persisted."""

    clean_name = (name or "").strip()
    if not clean_name:
        raise GroupValidationError("Group name is required")
    ids = unique_ids(contact_ids or [])
    if not ids:
        raise GroupValidationError("Group must contain at least one contact")
    if clean_name.lower() in _existing_names(existing):
        raise DuplicateGroupError(f"A group named '{clean_name}' already exists")

    timestamp = _now_iso()
    group = Group(
        id=generate_group_id(),
        name=clean_name,
        type=GroupType.parse(group_type),
        contact_ids=ids,
        description=(description or "").strip(),
        event_data=event_data,
        auto_generated=auto_generated,
        reason=reason,
        created_at=timestamp,
        last_modified=timestamp,
    )
    LOGGER.info("Created group %s (%s) with %s contacts", group.name, group.id, len(group.contact_ids))
    return group


def update_group(groups: Sequence[Group], group_id: str, **changes: Any) -> List[Group]:
    """Return a copy of ``groups`` with ``group_id`` updated."""

    for index, group in enumerate(groups):
        if group.id == group_id:
            break
    else:
        raise GroupNotFoundError(f"Group '{group_id}' not found")

    changes.pop("id", None)
    if "name" in changes:
        new_name = (changes["name"] or "").strip()
        if not new_name:
            raise GroupValidationError("Group name is required")
        others = [other for other in groups if other.id != group_id]
        if new_name.lower() in _existing_names(others):
            raise DuplicateGroupError(f"A group named '{new_name}' already exists")
        changes["name"] = new_name

    updated = replace(group, **changes)
    updated.last_modified = _now_iso()
    result = list(groups)
    result[index] = updated
    return result


# --- Auto generation ---

@dataclass
class AutoGroupOptions:
    group_by_company: bool = True
    group_by_location: bool = False
    group_by_events: bool = True
    min_group_size: int = 2
    max_groups: int = 10


def auto_generate_groups(
    contacts: Iterable[Contact],
    options: Optional[AutoGroupOptions] = None,
    existing: Iterable[Group] = (),
) -> List[Group]:
    """Group contacts sharing a company, city or event; skips names already in use."""

    options = options or AutoGroupOptions()
    buckets: Dict[str, Dict[str, Any]] = {}

    def add(name: str, group_type: GroupType, contact_id: str, reason: str) -> None:
        bucket = buckets.setdefault(name, {"type": group_type, "ids": [], "reason": reason})
        if contact_id not in bucket["ids"]:
            bucket["ids"].append(contact_id)

    contacts = list(contacts)
    if options.group_by_company:
        for contact in contacts:
            if contact.company and contact.company.strip():
                add(contact.company.strip(), GroupType.COMPANY, contact.id, "same_company")

    if options.group_by_location:
        for contact in contacts:
            if contact.city and contact.city.strip():
                label = ", ".join(part for part in (contact.city.strip(), (contact.country or "").strip()) if part)
                add(label, GroupType.AUTO, contact.id, "same_location")

    if options.group_by_events:
        for contact in contacts:
            if contact.event_info and contact.event_info.event_name.strip():
                add(contact.event_info.event_name.strip(), GroupType.EVENT, contact.id, "same_event")

    taken = _existing_names(existing)
    generated: List[Group] = []
    timestamp = _now_iso()
    for name, bucket in buckets.items():
        if len(bucket["ids"]) < options.min_group_size:
            continue
        if name.lower() in taken:
            LOGGER.debug("Skipping auto group %s - name already exists", name)
            continue
        taken.add(name.lower())
        generated.append(
            Group(
                id=generate_group_id(),
                name=name,
                type=bucket["type"],
                contact_ids=bucket["ids"],
                auto_generated=True,
                reason=bucket["reason"],
                created_at=timestamp,
                last_modified=timestamp,
            )
        )
        if len(generated) >= options.max_groups:
            break

    LOGGER.info("Auto-generated %s groups", len(generated))
    return generated


# --- Suggestions ---

@dataclass
class GroupDraft:
    """Pre-filled values for a group being created from a selection."""

    name: str
    type: GroupType
    description: str = ""
    event_id: Optional[str] = None


def suggest_group_details(
    selected: Sequence[Contact],
    nearby_events: Sequence[NearbyEvent] = (),
    today: Optional[date] = None,
) -> Optional[GroupDraft]:
    if not selected:
        return None

    seen: set = set()
    for contact in selected:
        company = contact.company
        if not company:
            continue
        if company in seen:
            return GroupDraft(
                name=f"{company} Team",
                type=GroupType.COMPANY,
                description=f"Contacts from {company}",
            )
        seen.add(company)

    if nearby_events:
        event = nearby_events[0]
        return GroupDraft(
            name=f"{event.name} Contacts",
            type=GroupType.EVENT,
            description=f"Contacts met at {event.name}",
            event_id=event.id,
        )

    today = today or date.today()
    return GroupDraft(name=f"Group {today.isoformat()}", type=GroupType.CUSTOM)


@dataclass
class GroupSuggestion:
    id: str
    name: str
    contact_ids: List[str]
    description: str = ""
    event_data: Optional[Dict[str, Any]] = None
    reason: str = ""
    priority: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "contactIds": list(self.contact_ids),
            "description": self.description,
            "eventData": self.event_data,
            "reason": self.reason,
            "priority": round(self.priority, 4),
            "metadata": dict(self.metadata),
        }


def suggest_event_groups(
    events: Iterable[NearbyEvent],
    existing: Iterable[Group] = (),
    *,
    max_suggestions: int = 5,
) -> List[GroupSuggestion]:
    """One suggestion per event that can form a group and whose name is still free.

    Contacts already grouped together under an existing group do not produce
    a second suggestion.
    """

    existing = list(existing)
    taken = _existing_names(existing)
    existing_sets = [set(group.contact_ids) for group in existing]

    suggestions: List[GroupSuggestion] = []
    for event in events:
        potential = event.grouping_potential()
        if not potential["can_create_group"]:
            continue
        name = potential["suggested_group_name"]
        if name.lower() in taken:
            continue
        ids = set(event.contact_ids)
        if any(ids <= group_ids for group_ids in existing_sets):
            continue
        taken.add(name.lower())
        suggestions.append(
            GroupSuggestion(
                id=f"suggestion_{event.id}",
                name=name,
                contact_ids=list(event.contact_ids),
                description=f"Contacts near {event.name}",
                event_data=event.as_event_data(),
                reason="nearby_event",
                priority=event.overall_score,
                metadata={
                    "confidence": event.confidence,
                    "venue_score": weighted_venue_score(
                        event.venue, "text_search" if event.is_text_search else "nearby_search"
                    ),
                },
            )
        )

    suggestions.sort(key=lambda item: (item.priority, item.metadata["venue_score"]), reverse=True)
    return suggestions[:max_suggestions]


def accept_suggestion(suggestion: GroupSuggestion, existing: Iterable[Group] = ()) -> Group:
    return create_group(
        suggestion.name,
        suggestion.contact_ids,
        group_type=GroupType.EVENT if suggestion.event_data else GroupType.CUSTOM,
        description=suggestion.description,
        event_data=suggestion.event_data,
        existing=existing,
        auto_generated=True,
        reason=suggestion.reason,
    )
