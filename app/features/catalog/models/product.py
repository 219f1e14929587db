"""Product domain model"""
from typing import Optional
from pydantic import BaseModel


class ProductBase(BaseModel):
    """Base product fields"""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    stock: Optional[int] = None


class ProductCreate(ProductBase):
    """Product creation model"""
    id: str


class ProductUpdate(BaseModel):
    """Product update model - all fields optional"""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    stock: Optional[int] = None


class Product(ProductBase):
    """Complete product model from database"""
    id: str

    class Config:
        from_attributes = True


class ProductStock(BaseModel):
    """Stock level of a single product"""
    id: str
    stock: Optional[int] = None
