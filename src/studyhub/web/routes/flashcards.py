"""Flashcard set and card endpoints."""

import random
from collections import defaultdict
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.db.data_service import DataService, asc, desc, eq, in_, select_one
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_data_service
from studyhub.web.schemas import (
    Envelope,
    FlashcardCreate,
    FlashcardSetCreate,
    FlashcardSetUpdate,
    FlashcardUpdate,
    StudyRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])


def _get_set(service: DataService, set_id: str) -> dict[str, Any]:
    flashcard_set = select_one(service, "flashcard_sets", [eq("id", set_id)])
    if flashcard_set is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flashcard set not found",
        )
    return flashcard_set


def _get_card(service: DataService, card_id: str) -> dict[str, Any]:
    card = select_one(service, "flashcards", [eq("id", card_id)])
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flashcard not found",
        )
    return card


def _cards_of(service: DataService, set_ids: list[str]) -> dict[str, list[dict[str, Any]]]:
    if not set_ids:
        return {}
    cards = service.select(
        "flashcards",
        filters=[in_("flashcard_set_id", set_ids)],
        order=[asc("created_at")],
    )
    by_set: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for card in cards:
        by_set[card["flashcard_set_id"]].append(card)
    return by_set


# =============================================================================
# SETS
# =============================================================================


@router.get("/users/{user_id}/sets", response_model=Envelope)
def get_user_sets(
    user_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Sets of a user with their cards, newest first."""
    sets = service.select(
        "flashcard_sets",
        filters=[eq("user_id", user_id)],
        order=[desc("created_at")],
    )
    cards = _cards_of(service, [s["id"] for s in sets])
    return Envelope(data=[{**s, "flashcards": cards.get(s["id"], [])} for s in sets])


@router.get("/sets/{set_id}", response_model=Envelope)
def get_set(
    set_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    flashcard_set = _get_set(service, set_id)
    cards = _cards_of(service, [set_id])
    return Envelope(data={**flashcard_set, "flashcards": cards.get(set_id, [])})


@router.post("/sets", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_set(
    body: FlashcardSetCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    flashcard_set = service.insert(
        "flashcard_sets",
        {
            "user_id": body.user_id,
            "title": body.title,
            "description": body.description,
            "subject": body.subject,
        },
    )
    logger.info("flashcard_set_created", set_id=flashcard_set["id"], user_id=body.user_id)
    return Envelope(message="Flashcard set created successfully", data=flashcard_set)


@router.put("/sets/{set_id}", response_model=Envelope)
def update_set(
    set_id: str,
    body: FlashcardSetUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_set(service, set_id)
    changes = body.model_dump(exclude_unset=True)
    changes["updated_at"] = now_iso()
    updated = service.update("flashcard_sets", changes, [eq("id", set_id)])
    return Envelope(message="Flashcard set updated successfully", data=updated[0])


@router.delete("/sets/{set_id}", response_model=Envelope)
def delete_set(
    set_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Delete a set together with its cards."""
    _get_set(service, set_id)
    service.delete("flashcards", [eq("flashcard_set_id", set_id)])
    service.delete("flashcard_sets", [eq("id", set_id)])
    logger.info("flashcard_set_deleted", set_id=set_id)
    return Envelope(message="Flashcard set deleted successfully")


# =============================================================================
# CARDS
# =============================================================================


@router.post("/cards", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_card(
    body: FlashcardCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_set(service, body.flashcard_set_id)
    card = service.insert(
        "flashcards",
        {
            "flashcard_set_id": body.flashcard_set_id,
            "question": body.question,
            "answer": body.answer,
        },
    )
    return Envelope(message="Flashcard created successfully", data=card)


@router.put("/cards/{card_id}", response_model=Envelope)
def update_card(
    card_id: str,
    body: FlashcardUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_card(service, card_id)
    changes = body.model_dump(exclude_unset=True)
    changes["updated_at"] = now_iso()
    updated = service.update("flashcards", changes, [eq("id", card_id)])
    return Envelope(message="Flashcard updated successfully", data=updated[0])


@router.delete("/cards/{card_id}", response_model=Envelope)
def delete_card(
    card_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_card(service, card_id)
    service.delete("flashcards", [eq("id", card_id)])
    return Envelope(message="Flashcard deleted successfully")


@router.post("/study", response_model=Envelope)
def study_set(
    body: StudyRequest,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Cards of a set in study order (shuffled unless disabled)."""
    flashcard_set = _get_set(service, body.set_id)
    cards = _cards_of(service, [body.set_id]).get(body.set_id, [])
    if body.shuffle:
        random.shuffle(cards)

    logger.debug("flashcard_study_started", set_id=body.set_id, cards=len(cards))
    return Envelope(
        data={
            "set": flashcard_set,
            "flashcards": cards,
            "total": len(cards),
        }
    )
