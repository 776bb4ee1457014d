"""Account endpoints.

POST /v1/accounts is called by the web app right after the upstream auth
provider has created the login; it provisions the marketplace side
(tenant, user and studio or talent profile).
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import get_current_user
from qcard_api.db.models import User
from qcard_api.db.session import get_db
from qcard_api.schemas import MeResponse, RegisterRequest, UserResponse
from qcard_api.services import accounts

router = APIRouter(prefix="/v1", tags=["accounts"])
logger = logging.getLogger(__name__)


def _me(db: Session, user: User, converted: int = 0) -> MeResponse:
    studio = accounts.get_studio_for_user(db, user)
    return MeResponse(
        user=UserResponse.model_validate(user),
        tenant_type=user.tenant.type if user.tenant else None,
        profile_id=user.profile.id if user.profile else None,
        studio_id=studio.id if studio else None,
        external_actors_converted=converted,
    )


@router.post("/accounts", status_code=status.HTTP_201_CREATED, response_model=MeResponse)
async def register(request: RegisterRequest, db: Session = Depends(get_db)) -> MeResponse:
    """Register a STUDIO or TALENT account.

    Raises:
        409: Email already registered
    """
    user, converted = accounts.register_account(
        db,
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        account_type=request.account_type,
        phone_number=request.phone_number,
        studio_name=request.studio_name,
    )
    return _me(db, user, converted)


@router.get("/me", response_model=MeResponse)
async def get_me(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> MeResponse:
    """Current user with tenant type, profile id and studio id."""
    return _me(db, user)
