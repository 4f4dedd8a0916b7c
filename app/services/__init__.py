"""Business logic sitting between the routes and the store."""
from .pokemon_service import PokemonService, PokemonNotFoundError, MissingParameterError

__all__ = [
    'PokemonService',
    'PokemonNotFoundError',
    'MissingParameterError'
]
