from pydantic import BaseModel, ConfigDict, Field


class Package(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: int
    name: str
    ram: int = Field(gt=0, description="Memory in MB; disk mirrors this value")
    price: int = Field(ge=0, description="Price in IDR")
