import re
import logging
from fastapi import HTTPException, status
from app.repositories.pokemon_repository import PokemonRepository
from app.models import PokemonCreate, PokemonUpdate, PokemonPage, DeleteResponse, INT64_MIN, INT64_MAX

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

class PokemonNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Pokemon not found")

class MissingParameterError(HTTPException):
    def __init__(self, name: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Query param '{name}' is required")

# Leading integer of a value: '25abc' -> 25, '2.5' -> 2, ' 7' -> 7
LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")

def parse_leading_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    match = LEADING_INT.match(raw)
    if match is None:
        return None
    return int(match.group(1))

def parse_pokemon_id(raw_id: str) -> int | None:
    """Parses a path id; anything without a leading integer, or outside int64, matches no record (None)."""
    pokemon_id = parse_leading_int(raw_id)
    if pokemon_id is None or not INT64_MIN <= pokemon_id <= INT64_MAX:
        return None
    return pokemon_id

def parse_page(raw_page: str | None) -> int:
    """Absent, non-numeric and non-positive pages all fall back to page 1."""
    page = parse_leading_int(raw_page)
    if page is None or page < 1:
        return 1
    return page

class PokemonService:
    # The repository is injected so tests can hand in a double
    def __init__(self, repository: PokemonRepository):
        self._repository = repository

    async def list_all(self) -> list[dict]:
        return await self._repository.find_all()

    async def list_page(self, raw_page: str | None) -> PokemonPage:
        """
        Returns one fixed-size slice of the collection, skipping (page - 1) * 20 records.
        Order is whatever the store returns; no sort key is imposed.
        """
        page = parse_page(raw_page)
        skip = (page - 1) * PAGE_SIZE
        if skip > INT64_MAX:
            # No collection reaches this offset
            records = []
        else:
            records = await self._repository.find_page(skip=skip, limit=PAGE_SIZE)
        return PokemonPage(page=page, limit=PAGE_SIZE, count=len(records), data=records)

    async def search_by_name(self, name: str | None) -> list[dict]:
        """
        Case-insensitive substring search across the english/french/japanese/chinese names.
        The query is escaped so it is always matched literally.
        """
        query = (name or "").strip()
        if not query:
            raise MissingParameterError("name")
        return await self._repository.search_names(re.escape(query))

    async def get_by_id(self, raw_id: str) -> dict:
        pokemon_id = parse_pokemon_id(raw_id)
        if pokemon_id is None:
            raise PokemonNotFoundError()
        record = await self._repository.find_by_id(pokemon_id)
        if record is None:
            raise PokemonNotFoundError()
        return record

    async def create(self, payload: PokemonCreate) -> dict:
        created = await self._repository.insert(payload.model_dump(exclude_none=True))
        logger.info(f"Created Pokemon {created['id']}")
        return created

    async def update(self, raw_id: str, payload: PokemonUpdate) -> dict:
        pokemon_id = parse_pokemon_id(raw_id)
        if pokemon_id is None:
            raise PokemonNotFoundError()
        # Only the fields present in the body are replaced; no upsert
        updated = await self._repository.update_by_id(pokemon_id, payload.model_dump(exclude_none=True))
        if updated is None:
            raise PokemonNotFoundError()
        logger.info(f"Updated Pokemon {pokemon_id}")
        return updated

    async def delete(self, raw_id: str) -> DeleteResponse:
        pokemon_id = parse_pokemon_id(raw_id)
        if pokemon_id is None:
            raise PokemonNotFoundError()
        deleted = await self._repository.delete_by_id(pokemon_id)
        if deleted is None:
            raise PokemonNotFoundError()
        logger.info(f"Deleted Pokemon {pokemon_id}")
        return DeleteResponse(message="Pokemon deleted successfully", id=pokemon_id)
