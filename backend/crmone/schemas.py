from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    # opcionais para devolver 400 com mensagem própria quando faltar algum
    email: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    avatar_url: str | None = None


class LoginResponse(BaseModel):
    message: str
    user: UserOut


class RegisterResponse(BaseModel):
    message: str
    user: UserOut


class RefreshResponse(BaseModel):
    message: str
    user: UserOut
    accessToken: str


class MessageResponse(BaseModel):
    message: str
