# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification sink contract.

Services receive a NotificationSink and call publish() unconditionally
after each successful state change. Delivery is best effort: a sink must
never raise into the caller.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class NotificationSink(Protocol):
    """Anything that accepts fire-and-forget notifications."""

    async def publish(self, event_type: str, payload: dict[str, Any]) -> Any:
        """Emit one notification."""
        ...


class NullNotificationSink:
    """Sink that drops every notification."""

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        return None
