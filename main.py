import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, EmailStr, Field, field_validator
from pymongo.database import Database

import catalog
import config
import database
import uploads
from auth import authenticate, get_current_user, register_user, require_admin, user_public
from chat import ChatGateway, configure_chat, get_chat_gateway, get_or_create_support_channel, issue_chat_token
from database import get_db
from errors import ValidationError, install_error_handlers
from schemas import Product as ProductSchema, ProductUpdate

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(os.path.join(config.UPLOAD_DIR, uploads.PRODUCT_SUBDIR), exist_ok=True)
    if database.db is not None:
        database.ensure_indexes(database.db)
    configure_chat()
    yield


app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


# Uploaded images
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")
app.mount("/api/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="api-uploads")


# Auth models
class RegisterInput(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class LoginInput(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    token: str
    user: Dict[str, Any]


# Routes
@app.get("/")
def read_root():
    return {"message": "Storefront API"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if config.DATABASE_URL else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        db = get_db()
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        response["database_name"] = db.name
        response["collections"] = db.list_collection_names()
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# Auth
@app.post("/api/auth/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterInput, db: Database = Depends(get_db)):
    return register_user(db, payload.name, payload.email, payload.password)


@app.post("/api/auth/login", response_model=TokenResponse)
def login(payload: LoginInput, db: Database = Depends(get_db)):
    return authenticate(db, payload.email, payload.password)


@app.get("/api/auth/me")
def me(current_user: dict = Depends(get_current_user)):
    return {"user": user_public(current_user)}


@app.get("/api/auth/chat-token")
def chat_token(current_user: dict = Depends(get_current_user), gateway: ChatGateway = Depends(get_chat_gateway)):
    token = issue_chat_token(gateway, current_user["id"], current_user.get("role", "user"))
    return {"token": token}


# Products
@app.get("/api/products")
def list_products(db: Database = Depends(get_db)):
    return catalog.list_products(db)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    return catalog.get_product(db, product_id)


@app.post("/api/products", status_code=201)
def create_product(data: ProductSchema, current_user: dict = Depends(require_admin), db: Database = Depends(get_db)):
    return catalog.create_product(db, data)


@app.put("/api/products/{product_id}")
def update_product(product_id: str, data: ProductUpdate, current_user: dict = Depends(require_admin), db: Database = Depends(get_db)):
    return catalog.update_product(db, product_id, data)


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, current_user: dict = Depends(require_admin), db: Database = Depends(get_db)):
    catalog.delete_product(db, product_id)
    return {"message": "Product deleted successfully"}


# Chat
@app.get("/api/chat/support-channel")
def support_channel(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
    gateway: ChatGateway = Depends(get_chat_gateway),
):
    return {"channel": get_or_create_support_channel(db, gateway, current_user)}


# Users
@app.get("/api/users/clients")
def list_clients(current_user: dict = Depends(require_admin), db: Database = Depends(get_db)):
    clients = db["user"].find({"role": {"$ne": "admin"}}).sort("created_at", -1)
    return {"clients": [user_public(c) for c in clients]}


# Uploads
@app.post("/api/upload/single")
def upload_single(image: Optional[UploadFile] = File(None), current_user: dict = Depends(require_admin)):
    if image is None:
        raise ValidationError("No file uploaded")
    saved = uploads.save_product_image(image, "image")
    return {"message": "File uploaded successfully", **saved}


@app.post("/api/upload/multiple")
def upload_multiple(images: Optional[List[UploadFile]] = File(None), current_user: dict = Depends(require_admin)):
    if not images:
        raise ValidationError("No files uploaded")
    files = uploads.save_product_images(images, "images")
    return {"message": "Files uploaded successfully", "files": files}


def run():
    import uvicorn

    configure_logging()
    missing = config.missing_settings()
    if "DATABASE_URL" in missing:
        logger.critical("DATABASE_URL is not set; refusing to start")
        sys.exit(1)
    for name in missing:
        logger.warning("%s is not set", name)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
