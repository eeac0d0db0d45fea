"""Delivery sink abstraction over the host notification surface."""

from typing import Callable, Protocol

from models.notification import NotificationConfig, PermissionStatus

CancelHandle = Callable[[], None]


def noop_cancel() -> None:
    """Inert cancellation handle returned when nothing was shown."""


class NotificationSink(Protocol):
    """Permission-gated notification delivery.

    show() must not raise when delivery is unsupported or not permitted; it
    returns noop_cancel instead. It raises NotificationDeliveryError only for
    platform failures during an attempted show.
    """

    def is_supported(self) -> bool:
        """Capability check. No side effects."""

    def get_permission_status(self) -> PermissionStatus:
        """Current permission. Never prompts."""

    async def request_permission(self) -> PermissionStatus:
        """Prompt only when the status is DEFAULT and return the result."""

    async def show(self, config: NotificationConfig) -> CancelHandle:
        """Render one alert and return a handle that dismisses it."""
