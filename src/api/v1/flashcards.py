"""Saved flashcard decks and their cards."""

from fastapi import APIRouter, HTTPException, status

from dependencies.auth import CurrentUser
from dependencies.services import Library
from schemas.api import ApiResponse
from schemas.library import (
    FlashcardCreate,
    FlashcardDeck,
    FlashcardDeckCreate,
    FlashcardRecord,
)


router = APIRouter(prefix="/flashcard-decks", tags=["flashcards"])


@router.get("", response_model=ApiResponse[list[FlashcardDeck]])
async def list_decks(
    current_user: CurrentUser, library: Library
) -> ApiResponse[list[FlashcardDeck]]:
    """Decks the caller owns plus every public deck."""
    decks = await library.decks_for(current_user.id)
    return ApiResponse(data=decks, message="Flashcard decks retrieved")


@router.post(
    "",
    response_model=ApiResponse[FlashcardDeck],
    status_code=status.HTTP_201_CREATED,
)
async def create_deck(
    payload: FlashcardDeckCreate, current_user: CurrentUser, library: Library
) -> ApiResponse[FlashcardDeck]:
    deck = await library.decks.add(
        **payload.model_dump(), user_id=current_user.id, created_at=library.now()
    )
    return ApiResponse(data=deck, message="Flashcard deck created")


@router.get("/{deck_id}/cards", response_model=ApiResponse[list[FlashcardRecord]])
async def list_cards(
    deck_id: int, current_user: CurrentUser, library: Library
) -> ApiResponse[list[FlashcardRecord]]:
    await library.decks.require_visible(deck_id, current_user.id)
    cards = await library.cards_in(deck_id)
    return ApiResponse(data=cards, message="Flashcards retrieved")


@router.post(
    "/{deck_id}/cards",
    response_model=ApiResponse[list[FlashcardRecord]],
    status_code=status.HTTP_201_CREATED,
)
async def add_cards(
    deck_id: int,
    payload: list[FlashcardCreate],
    current_user: CurrentUser,
    library: Library,
) -> ApiResponse[list[FlashcardRecord]]:
    """Append cards to a deck; only the deck owner may add cards."""
    deck = await library.decks.require_visible(deck_id, current_user.id)
    if deck.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the deck owner can add cards",
        )

    created_at = library.now()
    cards = [
        await library.cards.add(
            **card.model_dump(), deck_id=deck.id, created_at=created_at
        )
        for card in payload
    ]
    return ApiResponse(data=cards, message=f"{len(cards)} flashcards added")
