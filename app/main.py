import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.services.pokemon_service import PokemonService
from app.dependencies import get_pokemon_service, close_pokemon_repository
from app.models import (
    Pokemon,
    PokemonCreate,
    PokemonUpdate,
    PokemonPage,
    DeleteResponse,
    ErrorResponse,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PUBLIC_URL = os.getenv("PUBLIC_URL", "http://localhost:3000")
ASSETS_DIR = os.getenv("ASSETS_DIR", "assets")

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_pokemon_repository()

app = FastAPI(
    title="Pokemon API",
    version="1.0.0",
    description="CRUD API over a MongoDB collection of Pokemon records.",
    docs_url="/api-docs",
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/assets", StaticFiles(directory=ASSETS_DIR, check_dir=False), name="assets")

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Pokemon not found"}}
BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid request"}}
SERVER_ERROR = {500: {"model": ErrorResponse, "description": "Server error"}}


# --- Error rendering: every error body is {"error": <message>} ---

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        # Store details are logged, never returned
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"error": "Internal Server Error"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": format_validation_error(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def format_validation_error(exc: RequestValidationError) -> str:
    """Renders the first validation error as '<field.path>: <message>'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


# --- Routes ---

@app.get("/", response_class=PlainTextResponse, summary="Points to the API documentation")
async def root():
    return f"{PUBLIC_URL}/api-docs"


@app.get(
    "/pokemons",
    response_model=list[Pokemon],
    response_model_exclude_none=True,
    responses=SERVER_ERROR,
    tags=["Pokemons"],
    summary="Returns every Pokemon",
)
async def list_pokemons(service: PokemonService = Depends(get_pokemon_service)):
    return await service.list_all()


# Literal paths must be registered before /pokemons/{pokemon_id}
@app.get(
    "/pokemons/20",
    response_model=PokemonPage,
    response_model_exclude_none=True,
    responses=SERVER_ERROR,
    tags=["Pokemons"],
    summary="Returns Pokemon in pages of 20",
)
async def list_pokemons_page(
    page: str | None = None,
    service: PokemonService = Depends(get_pokemon_service),
):
    """Page number starts at 1; missing or invalid values fall back to the first page."""
    return await service.list_page(page)


@app.get(
    "/pokemons/search",
    response_model=list[Pokemon],
    response_model_exclude_none=True,
    responses={**BAD_REQUEST, **SERVER_ERROR},
    tags=["Pokemons"],
    summary="Searches Pokemon by name in every language",
)
async def search_pokemons(
    name: str | None = None,
    service: PokemonService = Depends(get_pokemon_service),
):
    """Case-insensitive substring match on the english, french, japanese and chinese names."""
    return await service.search_by_name(name)


@app.post(
    "/pokemons",
    response_model=Pokemon,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={
        **BAD_REQUEST,
        409: {"model": ErrorResponse, "description": "A Pokemon with this id already exists"},
        **SERVER_ERROR,
    },
    tags=["Pokemons"],
    summary="Creates a Pokemon",
)
async def create_pokemon(
    payload: PokemonCreate,
    service: PokemonService = Depends(get_pokemon_service),
):
    return await service.create(payload)


@app.get(
    "/pokemons/{pokemon_id}",
    response_model=Pokemon,
    response_model_exclude_none=True,
    responses={**NOT_FOUND, **SERVER_ERROR},
    tags=["Pokemons"],
    summary="Returns a Pokemon by its id",
)
async def get_pokemon(
    pokemon_id: str,
    service: PokemonService = Depends(get_pokemon_service),
):
    return await service.get_by_id(pokemon_id)


@app.put(
    "/pokemons/{pokemon_id}",
    response_model=Pokemon,
    response_model_exclude_none=True,
    responses={**BAD_REQUEST, **NOT_FOUND, **SERVER_ERROR},
    tags=["Pokemons"],
    summary="Updates a Pokemon by its id",
)
async def update_pokemon(
    pokemon_id: str,
    payload: PokemonUpdate,
    service: PokemonService = Depends(get_pokemon_service),
):
    """Fields present in the body replace the stored ones. A missing id is never created."""
    return await service.update(pokemon_id, payload)


@app.delete(
    "/pokemons/{pokemon_id}",
    response_model=DeleteResponse,
    responses={**NOT_FOUND, **SERVER_ERROR},
    tags=["Pokemons"],
    summary="Deletes a Pokemon by its id",
)
async def delete_pokemon(
    pokemon_id: str,
    service: PokemonService = Depends(get_pokemon_service),
):
    return await service.delete(pokemon_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
