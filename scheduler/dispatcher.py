"""Fire-time filtering, grouping and delivery of due reminders."""

import logging
from dataclasses import dataclass
from typing import Dict, List

from models.notification import NotificationConfig
from models.reminder import GroupingConfig, ReminderType, ScheduledReminder
from notifications.base import CancelHandle, NotificationSink
from utils.constants import GROUPED_LIST_BULLET, GROUPED_NOTIFICATION_TAG, GROUPED_TITLE

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Outcome of one slot firing."""

    time: str
    eligible: int = 0
    delivered: int = 0
    failed: int = 0
    grouped: bool = False


def should_group(eligible_count: int, config: GroupingConfig) -> bool:
    """Grouping applies when enabled and the count reaches min_count."""
    return config.enabled and eligible_count >= config.min_count


def build_grouped_notification(
    reminders: List[ScheduledReminder], group_by_type: bool
) -> NotificationConfig:
    """
    Merge reminders into one alert.

    With group_by_type the body has one line per reminder type, in
    ReminderType declaration order, listing that type's titles. Otherwise
    the body is a bullet list of all titles in registration order.
    """
    if group_by_type:
        by_type: Dict[ReminderType, List[str]] = {}
        for reminder in reminders:
            by_type.setdefault(reminder.type, []).append(reminder.title)
        lines = [
            f"{reminder_type.glyph} {reminder_type.label}: {', '.join(by_type[reminder_type])}"
            for reminder_type in ReminderType
            if reminder_type in by_type
        ]
    else:
        lines = [f"{GROUPED_LIST_BULLET} {reminder.title}" for reminder in reminders]

    return NotificationConfig(
        title=GROUPED_TITLE.format(count=len(reminders)),
        body="\n".join(lines),
        tag=GROUPED_NOTIFICATION_TAG,
        data={"grouped": True, "reminders": [dict(r.data) for r in reminders]},
    )


class DeliveryDispatcher:
    """Delivers the reminders of a fired slot through a NotificationSink."""

    def __init__(self, sink: NotificationSink) -> None:
        self._sink = sink
        self._handles: Dict[str, List[CancelHandle]] = {}

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    def filter_eligible(self, reminders: List[ScheduledReminder]) -> List[ScheduledReminder]:
        """Keep reminders without a predicate or whose predicate passes now."""
        eligible = []
        for reminder in reminders:
            if reminder.should_show is None:
                eligible.append(reminder)
                continue
            try:
                show = reminder.should_show.should_show()
            except Exception as e:
                logger.error(
                    f"Predicate for {reminder.id} failed, skipping it: {e}", exc_info=True
                )
                continue
            if show:
                eligible.append(reminder)
            else:
                logger.info(f"Skipping {reminder.id}: predicate returned False")
        return eligible

    async def dispatch(
        self, time_key: str, reminders: List[ScheduledReminder], config: GroupingConfig
    ) -> DispatchReport:
        """
        Deliver the due reminders of one slot.

        Args:
            time_key: Slot time, for logging
            reminders: Reminders in registration order
            config: Grouping config snapshot for this firing

        Returns:
            DispatchReport with counts
        """
        report = DispatchReport(time=time_key)
        eligible = self.filter_eligible(reminders)
        report.eligible = len(eligible)

        if not eligible:
            logger.info(f"All reminders at {time_key} were filtered out")
            return report

        if should_group(len(eligible), config):
            report.grouped = True
            notification = build_grouped_notification(eligible, config.group_by_type)
            await self._deliver(notification, report)
        else:
            for reminder in eligible:
                notification = NotificationConfig(
                    title=reminder.title,
                    body=reminder.body,
                    icon=reminder.icon,
                    tag=reminder.id,
                    data=dict(reminder.data),
                    require_interaction=reminder.requires_interaction,
                )
                await self._deliver(notification, report)

        logger.info(
            f"Dispatched reminders at {time_key}: {report.delivered} delivered, "
            f"{report.failed} failed, grouped={report.grouped}"
        )
        return report

    async def _deliver(self, notification: NotificationConfig, report: DispatchReport) -> None:
        try:
            handle = await self._sink.show(notification)
        except Exception as e:
            report.failed += 1
            logger.error(f"Failed to show notification {notification.tag}: {e}", exc_info=True)
            return
        report.delivered += 1
        self._handles.setdefault(notification.tag, []).append(handle)

    def cancel_all(self) -> None:
        """Invoke and drop every retained cancellation handle."""
        handles = self._handles
        self._handles = {}
        for tag, tag_handles in handles.items():
            for handle in tag_handles:
                try:
                    handle()
                except Exception as e:
                    logger.error(f"Failed to cancel notification {tag}: {e}", exc_info=True)

    def handle_count(self) -> int:
        return sum(len(handles) for handles in self._handles.values())
