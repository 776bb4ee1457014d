"""Studio <-> talent direct messages."""

import logging
from typing import Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qcard_api.db.models import CastingCall, Message, Profile, Project, Studio
from qcard_api.errors import NotFoundError
from qcard_api.services.common import get_or_404

logger = logging.getLogger(__name__)

Party = Union[Studio, Profile]


def _inbox_filter(party: Party):
    if isinstance(party, Studio):
        return Message.studio_receiver_id == party.id
    return Message.talent_receiver_id == party.id


def _sent_filter(party: Party):
    if isinstance(party, Studio):
        return Message.studio_sender_id == party.id
    return Message.talent_sender_id == party.id


def send_message(
    db: Session,
    sender: Party,
    recipient_id: str,
    subject: str,
    content: str,
    related_project_id: Optional[str] = None,
    related_casting_call_id: Optional[str] = None,
) -> Message:
    """Send from a studio to a profile, or from a profile to a studio."""
    if related_project_id:
        get_or_404(db, Project, related_project_id, "Project not found")
    if related_casting_call_id:
        get_or_404(db, CastingCall, related_casting_call_id, "Casting call not found")

    message = Message(
        subject=subject.strip(),
        content=content,
        related_project_id=related_project_id,
        related_casting_call_id=related_casting_call_id,
    )
    if isinstance(sender, Studio):
        recipient = get_or_404(db, Profile, recipient_id, "Talent profile not found")
        message.studio_sender_id = sender.id
        message.talent_receiver_id = recipient.id
    else:
        recipient = get_or_404(db, Studio, recipient_id, "Studio not found")
        message.talent_sender_id = sender.id
        message.studio_receiver_id = recipient.id

    db.add(message)
    db.commit()
    db.refresh(message)

    logger.info("Message sent", extra={"event": "message.sent", "message_id": message.id})
    return message


def list_inbox(db: Session, party: Party, unread_only: bool = False) -> list[Message]:
    query = db.query(Message).filter(_inbox_filter(party))
    if unread_only:
        query = query.filter(Message.is_read.is_(False))
    return query.order_by(Message.created_at.desc()).all()


def list_sent(db: Session, party: Party) -> list[Message]:
    return db.query(Message).filter(_sent_filter(party)).order_by(Message.created_at.desc()).all()


def get_message(db: Session, party: Party, message_id: str) -> Message:
    """Load a message the caller sent or received; anything else is not found."""
    message = (
        db.query(Message)
        .filter(Message.id == message_id, or_(_inbox_filter(party), _sent_filter(party)))
        .first()
    )
    if message is None:
        raise NotFoundError("Message not found")
    return message


def mark_read(db: Session, party: Party, message_id: str) -> Message:
    message = (
        db.query(Message).filter(Message.id == message_id, _inbox_filter(party)).first()
    )
    if message is None:
        raise NotFoundError("Message not found")
    message.is_read = True
    db.commit()
    db.refresh(message)
    return message


def unread_count(db: Session, party: Party) -> int:
    return db.query(Message).filter(_inbox_filter(party), Message.is_read.is_(False)).count()
