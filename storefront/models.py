"""Data models shared by the server and the client."""

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """A catalog entry built from an image file and its optional sidecar."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Image file name without extension")
    name: str = Field(description="Product name")
    price: float = Field(ge=0, description="Product price in shop currency")
    description: str = Field(default="", description="Product description")
    category: str = Field(default="", description="Product category, may be empty")
    image: str = Field(description="URL path of the product image")
