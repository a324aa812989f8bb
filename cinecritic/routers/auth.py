from typing import Annotated
from fastapi import APIRouter, Depends, Response, status, HTTPException
from fastapi.responses import RedirectResponse
from fastapi.security.oauth2 import OAuth2PasswordRequestForm
from ..schemas import Token
from ..models import User
from ..utils import verify
from ..OAuth2 import create_access_token, TOKEN_COOKIE_NAME
from ..config import settings

router = APIRouter(
    prefix="/logins",
    tags=["Authentication"]
)

@router.post("/token", status_code=status.HTTP_200_OK, response_model=Token)
async def login(user_cred: Annotated[OAuth2PasswordRequestForm, Depends()], response: Response):
    user = await User.find_one(User.email == user_cred.username.lower())

    if not user or not verify(user_cred.password, user.password):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid credentials. Please try again!")

    access_token = create_access_token(data={"id": str(user.id), "email": user.email})
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/logout")
async def redirect_to_login():
    redirect_response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    redirect_response.delete_cookie(key=TOKEN_COOKIE_NAME)
    return redirect_response
