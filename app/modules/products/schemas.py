# app/modules/products/schemas.py
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

ProductType = Literal["course", "ebook", "review"]
ReviewCategory = Literal["microfoon", "webcam", "accessoires"]


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0, description="em centavos")
    type: ProductType
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: Optional[ReviewCategory] = None
    is_active: bool = True
    featured: bool = False
    coming_soon: bool = False
    duration: Optional[str] = None
    level: Optional[str] = None
    students: Optional[int] = Field(None, ge=0)
    lessons: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    image_public_id: Optional[str] = None
    external_url: Optional[str] = None


class ProductCreate(ProductBase):
    @model_validator(mode="after")
    def _category_only_for_reviews(self):
        if self.category is not None and self.type != "review":
            raise ValueError("category só é permitida para produtos do tipo review")
        return self


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[int] = Field(None, ge=0)
    type: Optional[ProductType] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: Optional[ReviewCategory] = None
    is_active: Optional[bool] = None
    featured: Optional[bool] = None
    coming_soon: Optional[bool] = None
    duration: Optional[str] = None
    level: Optional[str] = None
    students: Optional[int] = Field(None, ge=0)
    lessons: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    image_public_id: Optional[str] = None
    external_url: Optional[str] = None


class ProductOut(ProductBase):
    id: int
    sales: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    """Dados ao vivo do catálogo exibidos no carrinho."""
    id: int
    name: str
    price: int
    type: str
    image_url: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
