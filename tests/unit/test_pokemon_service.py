import pytest
from unittest.mock import AsyncMock
from app.services.pokemon_service import (
    PokemonService,
    PokemonNotFoundError,
    MissingParameterError,
    PAGE_SIZE,
    parse_page,
    parse_pokemon_id,
)
from app.models import PokemonCreate, PokemonUpdate, PokemonPage, DeleteResponse
from app.repositories.pokemon_repository import StoreError

# Sample record returned by the MOCKED repository
MOCK_PIKACHU = {
    "id": 25,
    "name": {"english": "Pikachu", "french": "Pikachu"},
    "type": ["Electric"],
    "base": {"HP": 35, "Attack": 55, "Defense": 40, "SpecialAttack": 50, "SpecialDefense": 50, "Speed": 90},
    "image": "http://localhost:3000/assets/pokemons/25.png",
}

@pytest.fixture
def mock_repository():
    # Use AsyncMock for methods that are awaited
    repository = AsyncMock()
    repository.find_all.return_value = [MOCK_PIKACHU]
    repository.find_page.return_value = [MOCK_PIKACHU]
    repository.search_names.return_value = [MOCK_PIKACHU]
    repository.find_by_id.return_value = MOCK_PIKACHU
    repository.insert.return_value = MOCK_PIKACHU
    repository.update_by_id.return_value = MOCK_PIKACHU
    repository.delete_by_id.return_value = MOCK_PIKACHU
    return repository

@pytest.fixture
def pokemon_service(mock_repository):
    return PokemonService(repository=mock_repository)


# --- PARSING HELPERS ---

@pytest.mark.parametrize("raw, expected", [
    (None, 1),
    ("", 1),
    ("abc", 1),
    ("0", 1),
    ("-4", 1),
    ("1", 1),
    ("3", 3),
    ("2.5", 2),
    ("4abc", 4),
])
def test_parse_page_falls_back_to_first_page(raw, expected):
    assert parse_page(raw) == expected

@pytest.mark.parametrize("raw, expected", [
    ("25", 25),
    ("-1", -1),
    ("25abc", 25),
    ("2.5", 2),
    (" 7", 7),
    ("2_5", 2),
    ("pikachu", None),
    ("", None),
    ("9223372036854775807", 9223372036854775807),
    ("9223372036854775808", None),
    ("99999999999999999999", None),
    ("-9223372036854775809", None),
])
def test_parse_pokemon_id(raw, expected):
    assert parse_pokemon_id(raw) == expected


# --- LISTING ---

@pytest.mark.asyncio
async def test_list_all_returns_repository_records(pokemon_service, mock_repository):
    result = await pokemon_service.list_all()

    mock_repository.find_all.assert_called_once_with()
    assert result == [MOCK_PIKACHU]

@pytest.mark.asyncio
async def test_list_page_skips_previous_pages(pokemon_service, mock_repository):
    """Page 3 must skip the 40 records of pages 1 and 2."""
    # ACT
    result = await pokemon_service.list_page("3")

    # ASSERT
    mock_repository.find_page.assert_called_once_with(skip=40, limit=PAGE_SIZE)
    assert isinstance(result, PokemonPage)
    assert result.page == 3
    assert result.limit == 20
    assert result.count == 1

@pytest.mark.asyncio
async def test_list_page_defaults_to_first_page(pokemon_service, mock_repository):
    result = await pokemon_service.list_page(None)

    mock_repository.find_page.assert_called_once_with(skip=0, limit=PAGE_SIZE)
    assert result.page == 1

@pytest.mark.asyncio
async def test_list_page_beyond_last_page_is_empty(pokemon_service, mock_repository):
    mock_repository.find_page.return_value = []

    result = await pokemon_service.list_page("99")

    assert result.count == 0
    assert result.data == []

@pytest.mark.asyncio
async def test_list_page_with_huge_page_skips_the_store(pokemon_service, mock_repository):
    result = await pokemon_service.list_page("99999999999999999999")

    mock_repository.find_page.assert_not_called()
    assert result.page == 99999999999999999999
    assert result.count == 0
    assert result.data == []


# --- SEARCH ---

@pytest.mark.asyncio
async def test_search_trims_and_escapes_query(pokemon_service, mock_repository):
    """Regex metacharacters in the query must be matched literally."""
    await pokemon_service.search_by_name("  Mr. Mime (Galar)  ")

    mock_repository.search_names.assert_called_once_with(r"Mr\.\ Mime\ \(Galar\)")

@pytest.mark.asyncio
@pytest.mark.parametrize("name", [None, "", "   "])
async def test_search_without_name_is_rejected(pokemon_service, mock_repository, name):
    with pytest.raises(MissingParameterError) as excinfo:
        await pokemon_service.search_by_name(name)

    assert excinfo.value.status_code == 400
    assert "name" in excinfo.value.detail
    mock_repository.search_names.assert_not_called()


# --- GET BY ID ---

@pytest.mark.asyncio
async def test_get_by_id_success(pokemon_service, mock_repository):
    result = await pokemon_service.get_by_id("25")

    mock_repository.find_by_id.assert_called_once_with(25)
    assert result["id"] == 25

@pytest.mark.asyncio
async def test_get_by_id_missing_raises_404(pokemon_service, mock_repository):
    mock_repository.find_by_id.return_value = None

    with pytest.raises(PokemonNotFoundError) as excinfo:
        await pokemon_service.get_by_id("9999")

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Pokemon not found"

@pytest.mark.asyncio
async def test_get_by_non_numeric_id_never_reaches_store(pokemon_service, mock_repository):
    with pytest.raises(PokemonNotFoundError):
        await pokemon_service.get_by_id("pikachu")

    mock_repository.find_by_id.assert_not_called()

@pytest.mark.asyncio
async def test_get_by_out_of_range_id_never_reaches_store(pokemon_service, mock_repository):
    """Ids beyond int64 cannot be encoded as BSON; they simply match nothing."""
    with pytest.raises(PokemonNotFoundError):
        await pokemon_service.get_by_id("99999999999999999999")

    mock_repository.find_by_id.assert_not_called()


# --- WRITES ---

@pytest.mark.asyncio
async def test_create_stores_only_provided_fields(pokemon_service, mock_repository):
    payload = PokemonCreate(id=25, name={"french": "Pikachu"}, type=["Electric"])

    await pokemon_service.create(payload)

    mock_repository.insert.assert_called_once_with(
        {"id": 25, "name": {"french": "Pikachu"}, "type": ["Electric"]}
    )

@pytest.mark.asyncio
async def test_update_sets_only_provided_fields(pokemon_service, mock_repository):
    payload = PokemonUpdate(image="http://localhost:3000/assets/pokemons/26.png")

    result = await pokemon_service.update("25", payload)

    mock_repository.update_by_id.assert_called_once_with(
        25, {"image": "http://localhost:3000/assets/pokemons/26.png"}
    )
    assert result == MOCK_PIKACHU

@pytest.mark.asyncio
async def test_update_missing_raises_404(pokemon_service, mock_repository):
    mock_repository.update_by_id.return_value = None

    with pytest.raises(PokemonNotFoundError):
        await pokemon_service.update("9999", PokemonUpdate(type=["Fire"]))

@pytest.mark.asyncio
async def test_delete_returns_confirmation(pokemon_service, mock_repository):
    result = await pokemon_service.delete("25")

    mock_repository.delete_by_id.assert_called_once_with(25)
    assert isinstance(result, DeleteResponse)
    assert result.message == "Pokemon deleted successfully"
    assert result.id == 25

@pytest.mark.asyncio
async def test_delete_missing_raises_404(pokemon_service, mock_repository):
    mock_repository.delete_by_id.return_value = None

    with pytest.raises(PokemonNotFoundError):
        await pokemon_service.delete("25")


# --- ERROR HANDLING TEST ---

@pytest.mark.asyncio
async def test_store_failure_is_propagated(pokemon_service, mock_repository):
    """A store failure is not swallowed by the service; it reaches the route as a 500."""
    mock_repository.update_by_id.side_effect = StoreError("connection refused")

    with pytest.raises(StoreError) as excinfo:
        await pokemon_service.update("25", PokemonUpdate(type=["Fire"]))

    assert excinfo.value.status_code == 500
    assert "connection refused" in excinfo.value.detail
