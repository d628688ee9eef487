"""Flashcard service wrappers -- all return JSON-serializable dicts."""

from typing import Dict

from phrasebook.deck import FlashcardDeck


def get_due_flashcards(deck: FlashcardDeck) -> Dict:
    """Return due cards as record dicts with an embedded `srs` schedule."""
    return {'flashcards': [card.to_dict() for card in deck.due_cards()]}


def review_flashcard(deck: FlashcardDeck, key: str, quality: int) -> Dict:
    """
    Apply one review.

    Returns:
        {success, nextReview (ISO-8601 UTC), interval}

    Raises:
        InvalidInput, NotFound, StoreUnavailable.
    """
    summary = deck.submit_review(key, quality)
    return {
        'success': True,
        'nextReview': deck.clock.to_iso(summary.next_review),
        'interval': summary.interval,
    }


def get_deck_stats(deck: FlashcardDeck) -> Dict:
    return deck.stats().to_dict()
