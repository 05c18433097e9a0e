from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from trainhub.auth.dependencies import get_current_user
from trainhub.core import config
from trainhub.models.user import User

router = APIRouter(tags=['auth'])


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "email": current_user.email,
        "role": current_user.role,
        "studioId": current_user.studio_id,
    }


@router.post("/logout")
def logout():
    response = JSONResponse({"success": True})
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response
