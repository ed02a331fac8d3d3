"""
Database Schemas

Pydantic models for the MongoDB collections. Model name lowercased is the
collection name: User -> "user", Product -> "product".
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

Role = Literal["user", "admin"]
ProductStatus = Literal["active", "draft", "archived"]


def unique_in_order(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class User(BaseModel):
    name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password_hash: str = Field(..., description="BCrypt hashed password")
    role: Role = Field("user", description="Role: user | admin")
    avatar_url: Optional[str] = None


class Product(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0, allow_inf_nan=False)
    discount: float = Field(0, ge=0, le=100, allow_inf_nan=False, description="Percent off the list price")
    category: str = Field(..., min_length=1)
    images: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)
    status: ProductStatus = "active"

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("colors", "sizes")
    @classmethod
    def as_set(cls, v: List[str]) -> List[str]:
        return unique_in_order(v)


class ProductUpdate(BaseModel):
    """Partial product edit. Only fields present in the request are applied."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    discount: Optional[float] = Field(None, ge=0, le=100, allow_inf_nan=False)
    category: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("colors", "sizes")
    @classmethod
    def as_set(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else unique_in_order(v)

    def changes(self) -> dict:
        # explicit null means "leave unchanged"; 0, "" and [] are real values
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}
