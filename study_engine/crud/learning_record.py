from sqlalchemy.orm import Session
from study_engine.models import LearningRecordRow
from study_engine.schemas import LearningRecord
from typing import List, Optional

def get_learning_record(db: Session, user_id: str, concept_id: str) -> Optional[LearningRecordRow]:
    """Get the SM-3 record of one concept"""
    return db.get(LearningRecordRow, (user_id, concept_id))

def get_learning_records(db: Session, user_id: str, notebook_id: str) -> List[LearningRecordRow]:
    """Get all records a user holds for a notebook"""
    return db.query(LearningRecordRow).filter(
        LearningRecordRow.user_id == user_id,
        LearningRecordRow.notebook_id == notebook_id
    ).all()

def save_learning_record(db: Session, user_id: str, record: LearningRecord) -> LearningRecordRow:
    """Insert or replace the record of a concept"""
    row = get_learning_record(db, user_id, record.concept_id)
    if row is None:
        row = LearningRecordRow(user_id=user_id, concept_id=record.concept_id)
        db.add(row)

    row.notebook_id = record.notebook_id
    row.ease_factor = record.ease_factor
    row.interval = record.interval
    row.repetitions = record.repetitions
    row.quality = record.quality
    row.next_review_date = record.next_review_date
    row.last_review_date = record.last_review_date

    db.commit()
    db.refresh(row)
    return row

def delete_learning_record(db: Session, user_id: str, concept_id: str) -> bool:
    """Delete a record, returns False when there was none"""
    row = get_learning_record(db, user_id, concept_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True
