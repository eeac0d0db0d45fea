"""Fire-time suppression predicates for reminders."""

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class ReminderPredicate(Protocol):
    """Decides at fire time whether a reminder should still be shown.

    Implementations must be synchronous and free of side effects. The
    scheduler calls should_show() once per fire, never at registration.
    """

    def should_show(self) -> bool:
        ...


class CallablePredicate:
    """Adapts a zero-argument callable to ReminderPredicate."""

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[], bool]) -> None:
        self._func = func

    def should_show(self) -> bool:
        return bool(self._func())

    def __repr__(self) -> str:
        return f"CallablePredicate({self._func!r})"
