from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, confloat, constr, field_validator

from .models import Product

NonEmptyStr = constr(strict=True, min_length=1)  # Chaîne obligatoire et non vide
# NaN et Infinity sont refusés
FiniteFloat = confloat(strict=True, allow_inf_nan=False)


class ProductPayload(BaseModel):
    """Body accepted by create and update; every field is required."""

    model_config = ConfigDict(populate_by_name=True)

    name: NonEmptyStr
    description: NonEmptyStr
    price: Union[StrictInt, FiniteFloat]
    category: NonEmptyStr
    in_stock: StrictBool = Field(alias="inStock")

    @field_validator("price", mode="before")
    @classmethod
    def price_must_not_be_bool(cls, v):
        if isinstance(v, bool):
            raise ValueError("price must be a number")
        return v


class ProductPage(BaseModel):
    page: int
    limit: int
    total: int
    products: List[Product]


class DeletedProduct(BaseModel):
    message: str
    product: Product
