"""In-memory registry of reminders grouped by time of day."""

from typing import Dict, List, Optional

from models.reminder import ScheduledReminder


class ReminderRegistry:
    """
    Maps "HH:MM" slot keys to the reminders due at that time.

    Reminders keep registration order within a slot. Ids are unique across
    the whole registry and a slot with no reminders is never kept.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, List[ScheduledReminder]] = {}
        self._slot_by_id: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._slot_by_id)

    def __contains__(self, reminder_id: str) -> bool:
        return reminder_id in self._slot_by_id

    def add(self, reminder: ScheduledReminder) -> bool:
        """Append reminder to its slot. False if the id is already registered."""
        if reminder.id in self._slot_by_id:
            return False
        self._slots.setdefault(reminder.time, []).append(reminder)
        self._slot_by_id[reminder.id] = reminder.time
        return True

    def remove(self, reminder_id: str) -> Optional[ScheduledReminder]:
        """Remove a reminder by id, deleting its slot when it becomes empty."""
        time_key = self._slot_by_id.pop(reminder_id, None)
        if time_key is None:
            return None
        slot = self._slots[time_key]
        removed = None
        for index, reminder in enumerate(slot):
            if reminder.id == reminder_id:
                removed = slot.pop(index)
                break
        if not slot:
            del self._slots[time_key]
        return removed

    def find(self, reminder_id: str) -> Optional[ScheduledReminder]:
        time_key = self._slot_by_id.get(reminder_id)
        if time_key is None:
            return None
        return next(r for r in self._slots[time_key] if r.id == reminder_id)

    def has_slot(self, time_key: str) -> bool:
        return time_key in self._slots

    def slot(self, time_key: str) -> List[ScheduledReminder]:
        return list(self._slots.get(time_key, []))

    def pop_slot(self, time_key: str) -> List[ScheduledReminder]:
        """Remove and return the whole slot."""
        slot = self._slots.pop(time_key, [])
        for reminder in slot:
            self._slot_by_id.pop(reminder.id, None)
        return slot

    def times(self) -> List[str]:
        return list(self._slots)

    def snapshot(self) -> Dict[str, List[ScheduledReminder]]:
        """Copy of the time -> reminders mapping."""
        return {time_key: list(slot) for time_key, slot in self._slots.items()}

    def clear(self) -> None:
        self._slots.clear()
        self._slot_by_id.clear()
