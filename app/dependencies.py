from app.repositories import PokemonRepository
from app.services import PokemonService
from fastapi import Depends

_pokemon_repository = None

def get_pokemon_repository() -> PokemonRepository:
    global _pokemon_repository
    if _pokemon_repository is None:
        _pokemon_repository = PokemonRepository.from_url()
    return _pokemon_repository

def close_pokemon_repository():
    global _pokemon_repository
    if _pokemon_repository is not None:
        _pokemon_repository.close()
        _pokemon_repository = None

def get_pokemon_service(
    repository: PokemonRepository = Depends(get_pokemon_repository),
) -> PokemonService:
    return PokemonService(repository=repository)
