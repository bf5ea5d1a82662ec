from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.admin_user import AdminUser
from app.models.registro import Registro
from app.crud import registro as registro_crud
import os
import secrets
import string
import uuid
from dotenv import load_dotenv
import warnings

# Suppress the bcrypt warning
warnings.filterwarnings("ignore", ".*bcrypt version.*")
warnings.filterwarnings("ignore", ".*trapped.*error reading bcrypt version.*")
warnings.filterwarnings("ignore", ".*AttributeError.*__about__.*")

load_dotenv()

# Security configuration
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480")
)  # 8 horas por defecto para administradores

COOKIE_NAME = "asiento_registro_token"
COOKIE_MAX_AGE = 60 * 60 * 24 * int(os.getenv("REGISTRO_COOKIE_MAX_AGE_DAYS", "365"))
ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12,
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/token")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


# --- Registros (asistentes) ---


def generate_registro_token() -> str:
    """Secreto opaco del registro; también viaja en el enlace de invitación"""
    return str(uuid.uuid4())


def generate_access_code(length: int = 6) -> str:
    return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


def generate_unique_access_code(
    db: Session, template_id: Optional[int], length: int = 6
) -> str:
    code = generate_access_code(length)
    while registro_crud.access_code_exists(db, code, template_id):
        code = generate_access_code(length)
    return code


def create_registro_cookie_value(registro: Registro) -> str:
    """JWT firmado que envuelve el token del registro y su evento"""
    return jwt.encode(
        {
            "sub": registro.token,
            "tid": registro.template_id,
            "type": "registro",
            "exp": datetime.utcnow() + timedelta(seconds=COOKIE_MAX_AGE),
        },
        SECRET_KEY,
        algorithm=ALGORITHM,
    )


def set_registro_cookie(response: Response, registro: Registro) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_registro_cookie_value(registro),
        httponly=True,
        secure=os.getenv("ENVIRONMENT", "development") == "production",
        samesite="lax",
        max_age=COOKIE_MAX_AGE,
        path="/",
    )


def get_registro_from_cookie(
    db: Session, cookie_value: Optional[str], template_id: Optional[int] = None
) -> Optional[Registro]:
    """
    Resuelve el registro a partir de la cookie.

    Si se indica template_id, el registro debe pertenecer a ese evento; una
    cookie emitida para otro evento no sirve.
    """
    if not cookie_value:
        return None
    try:
        payload = jwt.decode(cookie_value, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "registro":
        return None
    token = payload.get("sub")
    if not token:
        return None
    if template_id is not None and payload.get("tid") != template_id:
        return None
    return registro_crud.get_registro_by_token(db, token, template_id)


# --- Administradores ---


def get_admin_by_email(db: Session, email: str):
    return db.query(AdminUser).filter(AdminUser.email == email).first()


def authenticate_admin(db: Session, email: str, password: str):
    admin = get_admin_by_email(db, email)
    if not admin or not admin.is_active or not admin.hashed_password:
        return False
    if not verify_password(password, admin.hashed_password):
        return False
    return admin


def get_current_admin(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        email: str = payload.get("sub")
        if email is None or payload.get("type") != "admin":
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    admin = get_admin_by_email(db, email=email)
    if admin is None or not admin.is_active:
        raise credentials_exception
    return admin
