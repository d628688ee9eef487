"""Translation history, favorites and SM-2 flashcard scheduling."""
