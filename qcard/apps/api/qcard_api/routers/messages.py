"""Direct messages between studios and talent."""

from typing import Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_party
from qcard_api.db.models import Profile, Studio
from qcard_api.db.session import get_db
from qcard_api.schemas import MessageCreate, MessageResponse, UnreadCountResponse
from qcard_api.services import messaging

router = APIRouter(prefix="/v1/messages", tags=["messages"])

Party = Union[Studio, Profile]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def send_message(
    request: MessageCreate,
    party: Party = Depends(require_party),
    db: Session = Depends(get_db),
):
    """Send a message.

    Studios address a talent profile id; talent address a studio id.
    """
    return messaging.send_message(
        db,
        party,
        request.recipient_id,
        request.subject,
        request.content,
        related_project_id=request.related_project_id,
        related_casting_call_id=request.related_casting_call_id,
    )


@router.get("/inbox", response_model=list[MessageResponse])
async def inbox(unread_only: bool = False, party: Party = Depends(require_party), db: Session = Depends(get_db)):
    return messaging.list_inbox(db, party, unread_only)


@router.get("/sent", response_model=list[MessageResponse])
async def sent(party: Party = Depends(require_party), db: Session = Depends(get_db)):
    return messaging.list_sent(db, party)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(party: Party = Depends(require_party), db: Session = Depends(get_db)) -> UnreadCountResponse:
    return UnreadCountResponse(count=messaging.unread_count(db, party))


@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(message_id: str, party: Party = Depends(require_party), db: Session = Depends(get_db)):
    return messaging.get_message(db, party, message_id)


@router.post("/{message_id}/read", response_model=MessageResponse)
async def mark_read(message_id: str, party: Party = Depends(require_party), db: Session = Depends(get_db)):
    return messaging.mark_read(db, party, message_id)
