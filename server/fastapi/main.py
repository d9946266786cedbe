import logging
from contextlib import AsyncExitStack, asynccontextmanager

import httpx
from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from pymongo import AsyncMongoClient

import config
from errors import ApiError, UpstreamError, ValidationError
from gateways import WeatherGateway, generate_image
from graph import graph
from models import (
    ChatRequest,
    ChatResponse,
    DeletedLocation,
    Endpoint,
    Location,
    LocationCreate,
    WeatherSnapshot,
)
from store import LocationStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the long-lived upstream clients before serving and close them on shutdown."""
    async with AsyncExitStack() as stack:
        mongo = AsyncMongoClient(config.MONGODB_URI)
        stack.push_async_callback(mongo.close)
        http_client = httpx.AsyncClient(timeout=config.HTTP_TIMEOUT)
        stack.push_async_callback(http_client.aclose)
        images = AsyncOpenAI()
        stack.push_async_callback(images.close)

        app.state.store = LocationStore(mongo[config.MONGODB_DB][config.LOCATIONS_COLLECTION])
        app.state.weather = WeatherGateway(http_client, config.OPENWEATHER_API_KEY, config.OPENWEATHER_URL)
        app.state.images = images

        try:
            await app.state.store.ensure_indexes()
            logger.info("Connected to MongoDB")
        except Exception as e:
            # Each database call reports its own failure later
            logger.error("MongoDB connection error: %s", e)

        yield


app = FastAPI(
    title="SkyGlymps API",
    description="Saved locations, current weather and AI chat for SkyGlymps",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error mapping ---


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"Invalid request: {field + ': ' if field else ''}{first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=ValidationError.status_code, content={"error": message})


# --- Dependencies ---


def get_store(request: Request) -> LocationStore:
    return request.app.state.store


def get_weather_gateway(request: Request) -> WeatherGateway:
    return request.app.state.weather


def get_image_client(request: Request) -> AsyncOpenAI:
    return request.app.state.images


# --- API docs ---


API_ENDPOINTS = [
    Endpoint(path="/", method="GET", description="Welcome message and API status"),
    Endpoint(path="/health", method="GET", description="Liveness check"),
    Endpoint(path="/api/locations", method="GET", description="Get all saved locations"),
    Endpoint(
        path="/api/locations",
        method="POST",
        description="Save a new location",
        body={"latitude": "number (required)", "longitude": "number (required)"},
    ),
    Endpoint(path="/api/locations/{locationId}", method="DELETE", description="Delete a location by ID"),
    Endpoint(
        path="/api/chat",
        method="POST",
        description="Send a message to AI chat",
        body={"message": "string (required)"},
    ),
    Endpoint(
        path="/api/weather",
        method="GET",
        description="Get weather data for coordinates",
        query={"latitude": "number (required)", "longitude": "number (required)"},
    ),
    Endpoint(path="/api/docs", method="GET", description="List all available API endpoints"),
]


def api_docs() -> dict:
    return {"endpoints": [e.model_dump(exclude_none=True) for e in API_ENDPOINTS]}


# --- Endpoints ---


@app.get("/")
async def root():
    return api_docs()


@app.get("/api/docs")
async def docs():
    return api_docs()


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/locations", response_model=list[Location])
async def list_locations(store: LocationStore = Depends(get_store)):
    return await store.list_all()


@app.post("/api/locations", response_model=Location, status_code=201)
async def create_location(payload: LocationCreate, store: LocationStore = Depends(get_store)):
    if payload.latitude is None or payload.longitude is None:
        raise ValidationError("Latitude and longitude are required")
    return await store.create(payload.latitude, payload.longitude)


@app.delete("/api/locations/{location_id}", response_model=DeletedLocation)
async def delete_location(location_id: str, store: LocationStore = Depends(get_store)):
    location = await store.delete(location_id)
    return DeletedLocation(message="Location deleted successfully", location=location)


@app.get("/api/weather", response_model=WeatherSnapshot)
async def weather(
    latitude: float | None = Query(None),
    longitude: float | None = Query(None),
    gateway: WeatherGateway = Depends(get_weather_gateway),
):
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude are required")
    return await gateway.get_weather(latitude, longitude)


@app.post("/api/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    background_tasks: BackgroundTasks,
    images: AsyncOpenAI = Depends(get_image_client),
):
    """Single-turn chat. Also queues the image side effect, which runs after the response is sent."""
    if not request.message:
        raise ValidationError("Message is required")

    background_tasks.add_task(generate_image, images)

    try:
        result = await graph.ainvoke({"messages": [{"role": "user", "content": request.message}]})
    except Exception as e:
        logger.exception("OpenAI API error: %s", e)
        error = UpstreamError("Failed to get response from AI", details=str(e))
        # Returned rather than raised so the queued image request still runs
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_body(),
            background=background_tasks,
        )

    ai_message = result["messages"][-1]
    return ChatResponse(response=ai_message.content)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
