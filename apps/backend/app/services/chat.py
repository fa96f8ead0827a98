from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.models.chat import ChatMessage, ChatSession
from app.schemas.chat import MessageOut, SessionMetadata, SessionOut, SessionStats
from app.schemas.events import EventIn, StoredEvent
from app.services.analytics import AnalyticsService
from app.services.tenants import TenantService
from app.time_utils import Clock, isoformat_z, utc_now

logger = logging.getLogger(__name__)

# (keywords, reply); first match wins
CANNED_RESPONSES: List[Tuple[Tuple[str, ...], str]] = [
    (
        ("bmw", "beemer"),
        "Great choice! For BMW vehicles, we typically recommend wheels with a 5x120 bolt pattern. "
        "What's your specific model and year? I can help you find the perfect fitment with proper "
        "offset and sizing.",
    ),
    (
        ("honda", "civic", "accord"),
        "Honda vehicles usually use a 5x114.3 bolt pattern. For Civics, we often recommend 16-18 inch "
        "wheels, while Accords can handle 17-19 inch wheels beautifully. What's your budget range?",
    ),
    (
        ("ford", "mustang", "f150"),
        "Ford has different bolt patterns depending on the model. Mustangs use 5x114.3, while F-150s "
        "use 6x135. What Ford model are you looking to outfit?",
    ),
    (
        ("tire", "tyre"),
        "For tire recommendations, I'll need to know your wheel size and driving style. Are you looking "
        "for all-season, performance, or off-road tires? What's your current tire size?",
    ),
    (
        ("offset", "et"),
        "Offset is crucial for proper fitment! It affects how the wheel sits in relation to your fender "
        "and suspension. Too aggressive an offset can cause rubbing or clearance issues. What vehicle "
        "are you working with?",
    ),
    (
        ("size", "diameter"),
        "Wheel sizing depends on your vehicle and desired look. We can usually go +1 or +2 inches from "
        "stock diameter while maintaining proper tire sidewall height. What's your current wheel size?",
    ),
    (
        ("price", "cost", "budget"),
        "Our wheels range from $150-$800 per wheel depending on size, brand, and finish. We have great "
        "options at every price point. What's your target budget per wheel?",
    ),
    (
        ("hello", "hi", "hey"),
        "Hello! I'm here to help you find the perfect wheels and tires for your vehicle. What car are "
        "you looking to upgrade?",
    ),
    (
        ("help",),
        "I can help you with wheel fitment, tire sizing, bolt patterns, offsets, and recommendations for "
        "your specific vehicle. Just tell me what you're driving and what you're looking for!",
    ),
]

DEFAULT_RESPONSE = (
    "I'd be happy to help with your fitment needs! Could you tell me more about your vehicle (make, "
    "model, year) and what you're looking for? I can assist with wheel sizing, bolt patterns, offsets, "
    "and tire recommendations."
)


def generate_response(user_message: str) -> str:
    """Keyword-matched reply. Plain substring match, so "et" also hits "get"."""
    text = user_message.lower()
    for keywords, reply in CANNED_RESPONSES:
        if any(k in text for k in keywords):
            return reply
    return DEFAULT_RESPONSE


def message_out(msg: ChatMessage) -> MessageOut:
    return MessageOut(
        id=msg.id,
        message=msg.message,
        sender=msg.sender,
        timestamp=msg.created_at,
        metadata=msg.meta or {},
    )


def session_out(session: ChatSession) -> SessionOut:
    return SessionOut(
        session_id=session.session_id,
        tenant_id=session.tenant_id,
        messages=[message_out(m) for m in session.messages],
        metadata=SessionMetadata(
            message_count=len(session.messages),
            first_message_at=session.first_message_at,
            last_message_at=session.last_message_at,
        ),
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


class ChatService:
    def __init__(
        self,
        db: Session,
        analytics: AnalyticsService,
        tenants: TenantService,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.analytics = analytics
        self.tenants = tenants
        self.clock = clock

    def _track(
        self,
        event_type: str,
        session: ChatSession,
        data: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> StoredEvent:
        return self.analytics.track(
            EventIn(
                event_type=event_type,
                tenant_id=session.tenant_id,
                session_id=session.session_id,
                data=data or {},
                user_agent=user_agent,
                ip_address=ip_address,
            )
        )

    def create_session(
        self,
        tenant_id: Optional[str],
        session_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ChatSession:
        if not tenant_id:
            raise ValidationError("tenantId is required")

        tenant = self.tenants.get(tenant_id)
        if not tenant.enabled:
            raise ForbiddenError("Chat widget is disabled for this tenant")

        sid = session_id or f"sess-{uuid.uuid4()}"
        if self.db.get(ChatSession, sid) is not None:
            raise ValidationError(f"Session {sid} already exists")

        now = self.clock()
        session = ChatSession(session_id=sid, tenant_id=tenant_id, created_at=now, updated_at=now)
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        logger.info("Created chat session: %s for tenant: %s", sid, tenant_id)

        self._track("session_created", session, user_agent=user_agent, ip_address=ip_address)
        return session

    def get_session(self, session_id: str) -> ChatSession:
        session = self.db.get(ChatSession, session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def log_message(
        self,
        session: ChatSession,
        message: str,
        sender: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChatMessage:
        now = self.clock()
        msg = ChatMessage(
            id=f"msg-{uuid.uuid4()}",
            session_id=session.session_id,
            sender=sender,
            message=message,
            meta=metadata or {},
            created_at=now,
        )
        session.messages.append(msg)
        if session.first_message_at is None:
            session.first_message_at = now
        session.last_message_at = now
        session.updated_at = now

        self.db.commit()
        logger.info("Logged message in session %s: %s", session.session_id, sender)
        return msg

    def send_message(
        self,
        session_id: Optional[str],
        message: Optional[str],
        sender: str = "user",
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Tuple[ChatMessage, Optional[ChatMessage]]:
        """
        Store the message and, for user messages, the canned assistant reply.
        Each stored message is also tracked as a `message_sent` event.
        """
        if not session_id or not message:
            raise ValidationError("sessionId and message are required")

        session = self.get_session(session_id)
        user_msg = self.log_message(
            session,
            message,
            sender,
            metadata={"userAgent": user_agent, "ipAddress": ip_address},
        )
        self._track(
            "message_sent",
            session,
            data={"sender": sender, "messageLength": len(message)},
            user_agent=user_agent,
            ip_address=ip_address,
        )

        if sender != "user":
            return user_msg, None

        reply = generate_response(message)
        assistant_msg = self.log_message(
            session,
            reply,
            "assistant",
            metadata={"generatedAt": isoformat_z(self.clock()), "inResponseTo": user_msg.id},
        )
        self._track(
            "message_sent",
            session,
            data={"sender": "assistant", "messageLength": len(reply)},
            user_agent=user_agent,
            ip_address=ip_address,
        )
        return user_msg, assistant_msg

    def log_event(
        self,
        session_id: Optional[str],
        event_type: Optional[str],
        data: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> StoredEvent:
        if not session_id or not event_type:
            raise ValidationError("sessionId and eventType are required")

        session = self.get_session(session_id)
        session.updated_at = self.clock()
        self.db.commit()

        logger.info("Logged event in session %s: %s", session_id, event_type)
        return self._track(event_type, session, data, user_agent, ip_address)

    def sessions_for_tenant(self, tenant_id: str, limit: int = 50) -> List[ChatSession]:
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.tenant_id == tenant_id)
            .order_by(ChatSession.created_at.desc())
            .limit(limit)
            .all()
        )

    def session_stats(self, tenant_id: str) -> SessionStats:
        sessions = self.sessions_for_tenant(tenant_id, limit=1000)
        total_sessions = len(sessions)
        total_messages = sum(len(s.messages) for s in sessions)
        avg = total_messages / total_sessions if total_sessions else 0

        return SessionStats(
            tenant_id=tenant_id,
            total_sessions=total_sessions,
            total_messages=total_messages,
            avg_messages_per_session=round(avg, 2),
            last_activity=sessions[0].updated_at if sessions else None,
        )
