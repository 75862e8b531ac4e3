"""
Per-session state shared by the conversation orchestrator and the page
lifecycle controller. One SessionState per browser session; only those two
components mutate it.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from landing_engine.models import (
    ContentModel,
    ConversationMessage,
    Notification,
    NotificationLevel,
    PersistedRecord,
    SessionSnapshot,
    SessionStatus,
    View,
)


@dataclass
class SessionState:
    """Tracks conversation, current page and saved pages for one session"""
    session_id: str
    messages: List[ConversationMessage] = field(default_factory=list)
    content: Optional[ContentModel] = None
    current_record_id: Optional[str] = None
    view: View = View.CHAT
    status: SessionStatus = SessionStatus.IDLE
    records: List[PersistedRecord] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)

    @property
    def awaiting_completion(self) -> bool:
        return self.status == SessionStatus.AWAITING_COMPLETION

    def append(self, message: ConversationMessage) -> ConversationMessage:
        self.messages.append(message)
        return message

    def notify(self, level: NotificationLevel, text: str) -> Notification:
        notification = Notification(level=level, text=text)
        self.notifications.append(notification)
        return notification

    def dismiss(self, notification_id: str) -> bool:
        before = len(self.notifications)
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        return len(self.notifications) != before

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            status=self.status,
            view=self.view,
            messages=list(self.messages),
            content=self.content.to_wire() if self.content else None,
            current_record_id=self.current_record_id,
            records=list(self.records),
            notifications=list(self.notifications),
        )
