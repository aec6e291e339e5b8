"""IDX stock quote API."""
