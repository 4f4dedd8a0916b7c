"""Data-access modules for the document store."""
from .pokemon_repository import PokemonRepository, StoreError, DuplicatePokemonError

__all__ = [
    'PokemonRepository',
    'StoreError',
    'DuplicatePokemonError'
]
