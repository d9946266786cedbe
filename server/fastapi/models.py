from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


class LocationCreate(BaseModel):
    # Optional so a missing coordinate is reported as a 400, not a schema error
    latitude: float | None = None
    longitude: float | None = None


class Location(BaseModel):
    location_id: str = Field(alias="locationId")
    latitude: float
    longitude: float

    model_config = ConfigDict(populate_by_name=True)


class DeletedLocation(BaseModel):
    message: str
    location: Location


class WeatherSnapshot(BaseModel):
    temperature: int | float
    humidity: int | float
    wind_speed: int | float = Field(alias="windSpeed")
    wind_degree: int | float = Field(alias="windDegree")

    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(BaseModel):
    message: str | None = None


class ChatResponse(BaseModel):
    response: str


class Endpoint(BaseModel):
    path: str
    method: Literal["GET", "POST", "DELETE"]
    description: str
    body: dict[str, str] | None = None
    query: dict[str, str] | None = None
