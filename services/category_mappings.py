"""Category mapping service for database operations."""

from typing import List

from models.category_mapping import CategoryMapping


class CategoryMappingService:
    """Service for the learned text to category mappings."""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def find_all(self, user_id: str) -> List[CategoryMapping]:
        """Get all mappings for a user, ordered by text."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                SELECT user_id, text_input, category_id, subcategory_id, confidence_score
                FROM category_mappings
                WHERE user_id = ?
                ORDER BY text_input
                """,
                (user_id,),
            )
            return [
                CategoryMapping(
                    user_id=row[0],
                    text_input=row[1],
                    category_id=row[2],
                    subcategory_id=row[3],
                    confidence_score=row[4],
                )
                for row in cursor.fetchall()
            ]

    def upsert_many(self, mappings: List[CategoryMapping]) -> int:
        """Insert mappings, replacing any existing one for the same text.

        Returns:
            Number of mappings written.
        """
        if not mappings:
            return 0

        with self.db_manager.connect() as conn:
            conn.executemany(
                """
                INSERT INTO category_mappings
                    (user_id, text_input, category_id, subcategory_id, confidence_score)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id, text_input) DO UPDATE SET
                    category_id = excluded.category_id,
                    subcategory_id = excluded.subcategory_id,
                    confidence_score = excluded.confidence_score,
                    updated_at = CURRENT_TIMESTAMP
                """,
                [
                    (
                        m.user_id,
                        m.text_input.lower(),
                        m.category_id,
                        m.subcategory_id,
                        m.confidence_score,
                    )
                    for m in mappings
                ],
            )
            conn.commit()

        return len(mappings)
