"""
Review selection: which concepts of a notebook a smart session may draw from.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from study_engine.config import settings
from study_engine.exceptions import StoreUnavailableError
from study_engine.logging import get_logger
from study_engine.schemas import Concept, LearningRecord, ReviewSelection
from study_engine.sm3 import SM3Algorithm
from study_engine.stores import ContentProvider, LearningRecordStore

logger = get_logger(__name__)


def _partition(
    concepts: Sequence[Concept],
    records: Sequence[LearningRecord],
    reference_time: datetime,
    min_batch: int
) -> Tuple[List[Concept], List[LearningRecord]]:
    recorded_ids = {record.concept_id for record in records}
    new_concepts = [c for c in concepts if c.id not in recorded_ids]

    today = reference_time.date()
    due_records = [r for r in records if SM3Algorithm.is_due_for_review(r, today)]

    # Study a little early rather than hand back an empty session
    if records and len(due_records) + len(new_concepts) < min_batch:
        upcoming = sorted(
            (r for r in records if not SM3Algorithm.is_due_for_review(r, today)),
            key=lambda r: r.next_review_date
        )
        missing = min_batch - len(due_records) - len(new_concepts)
        due_records.extend(upcoming[:missing])

    return new_concepts, due_records


def select_reviewable(
    concepts: Sequence[Concept],
    records: Sequence[LearningRecord],
    reference_time: Optional[datetime] = None,
    min_batch: Optional[int] = None
) -> ReviewSelection:
    """
    Split a notebook into concepts never studied and records due for review.

    Args:
        concepts: All live concepts of the notebook, in encounter order
        records: The user's learning records for the notebook
        reference_time: Optional reference time (defaults to now)
        min_batch: Minimum combined size before backfilling with upcoming records

    Returns:
        ReviewSelection with disjoint new_concepts and due_records
    """
    reference_time = reference_time or datetime.now()
    min_batch = settings.min_batch if min_batch is None else min_batch
    new_concepts, due_records = _partition(concepts, records, reference_time, min_batch)
    return ReviewSelection(new_concepts=new_concepts, due_records=due_records)


def count_reviewable(
    concepts: Sequence[Concept],
    records: Sequence[LearningRecord],
    reference_time: Optional[datetime] = None,
    min_batch: Optional[int] = None
) -> int:
    """Number of concepts select_reviewable would return for the same inputs"""
    reference_time = reference_time or datetime.now()
    min_batch = settings.min_batch if min_batch is None else min_batch
    new_concepts, due_records = _partition(concepts, records, reference_time, min_batch)
    return len(new_concepts) + len(due_records)


class ReviewSelector:
    """Store-bound selection with orphan cleanup"""

    def __init__(
        self,
        record_store: LearningRecordStore,
        content_provider: ContentProvider,
        min_batch: Optional[int] = None
    ):
        self.record_store = record_store
        self.content_provider = content_provider
        self.min_batch = settings.min_batch if min_batch is None else min_batch

    def _load(self, user_id: str, notebook_id: str) -> Tuple[List[Concept], List[LearningRecord]]:
        concepts = self.content_provider.list_concepts(notebook_id)
        records = self.record_store.get_all(user_id, notebook_id)
        return concepts, records

    def select(
        self,
        user_id: str,
        notebook_id: str,
        reference_time: Optional[datetime] = None
    ) -> List[Concept]:
        """
        Concepts a smart session may draw: due ones, most overdue first,
        followed by new ones.
        Read failures yield an empty list.
        """
        try:
            concepts, records = self._load(user_id, notebook_id)
        except StoreUnavailableError as e:
            logger.error(f"Could not load reviewable concepts for notebook {notebook_id}: {e}")
            return []

        selection = select_reviewable(concepts, records, reference_time, self.min_batch)

        by_id = {concept.id: concept for concept in concepts}
        due_records = sorted(selection.due_records, key=lambda r: r.next_review_date)
        due_concepts = [by_id[r.concept_id] for r in due_records if r.concept_id in by_id]

        if selection.due_records and not due_concepts:
            self._delete_orphans(user_id, selection.due_records)

        return due_concepts + selection.new_concepts

    def count(
        self,
        user_id: str,
        notebook_id: str,
        reference_time: Optional[datetime] = None
    ) -> int:
        """Reviewable count for availability hints, 0 when the stores are down"""
        try:
            concepts, records = self._load(user_id, notebook_id)
        except StoreUnavailableError as e:
            logger.error(f"Could not count reviewable concepts for notebook {notebook_id}: {e}")
            return 0
        return count_reviewable(concepts, records, reference_time, self.min_batch)

    def _delete_orphans(self, user_id: str, records: Sequence[LearningRecord]):
        """Remove records whose concept no longer exists. Best-effort."""
        for record in records:
            try:
                self.record_store.delete(user_id, record.concept_id)
                logger.info(
                    f"Deleted orphaned learning record {record.concept_id}",
                    extra={"user_id": user_id, "action": "orphan_cleanup"}
                )
            except StoreUnavailableError as e:
                logger.warning(f"Could not delete orphaned learning record {record.concept_id}: {e}")
