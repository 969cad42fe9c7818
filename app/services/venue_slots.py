import logging
import uuid
from typing import List, Optional, Any

from app.core.exceptions import NotFoundError, ValidationError
from app.models.schedule import Slot, SlotDraft, SlotDraftCreate
from app.services.time_encoding import to_display, display_to_storage

logger = logging.getLogger(__name__)


class SlotList:
    """
    Editable list of slots attached to one venue.

    Slots have no stable identity; a slot is addressed by its position.
    Transient ids exist only to wire editor rows and are not serialized.
    """

    def __init__(self, drafts: Optional[List[SlotDraft]] = None):
        self._drafts: List[SlotDraft] = list(drafts or [])

    @classmethod
    def deserialize(cls, slots: Optional[List[Any]]) -> "SlotList":
        drafts = []
        for raw in slots or []:
            slot = raw if isinstance(raw, Slot) else Slot.model_validate(raw)
            drafts.append(SlotDraft(
                day=slot.day,
                name=slot.name,
                start=to_display(slot.start),
                end=to_display(slot.end),
                transient_id=uuid.uuid4().hex
            ))
        return cls(drafts)

    def __len__(self) -> int:
        return len(self._drafts)

    @property
    def drafts(self) -> List[SlotDraft]:
        return list(self._drafts)

    def add_slot(self, draft: Optional[SlotDraft] = None) -> str:
        """Append a slot, with the 8:00 PM - 11:59 PM defaults when not given"""
        draft = draft or SlotDraft()
        transient_id = uuid.uuid4().hex
        self._drafts.append(draft.model_copy(update={"transient_id": transient_id}))
        return transient_id

    def remove_slot(self, index: int) -> SlotDraft:
        if index < 0 or index >= len(self._drafts):
            raise NotFoundError(f"Slot {index} not found", {"index": index, "count": len(self._drafts)})
        return self._drafts.pop(index)

    def serialize(self) -> List[dict]:
        return [
            {
                "day": draft.day.value,
                "name": draft.name,
                "start": display_to_storage(draft.start),
                "end": display_to_storage(draft.end),
            }
            for draft in self._drafts
        ]


def draft_from_create(data: SlotDraftCreate) -> SlotDraft:
    defaults = SlotDraft()
    return SlotDraft(
        day=data.day,
        name=data.name,
        start=data.start or defaults.start,
        end=data.end or defaults.end
    )


def validate_slots(slots: Any) -> List[dict]:
    """Validate a stored slot array, returning it in canonical form"""
    if slots in (None, ""):
        return []
    if not isinstance(slots, list):
        raise ValidationError("available_slots must be a list")

    result = []
    for index, raw in enumerate(slots):
        if isinstance(raw, SlotDraft):
            result.append(SlotList([raw]).serialize()[0])
            continue
        try:
            slot = raw if isinstance(raw, Slot) else Slot.model_validate(raw)
        except ValueError as e:
            raise ValidationError(f"Invalid slot at position {index}", {"index": index, "error": str(e)})
        result.append(slot.model_dump(mode="json"))
    return result
