from sqlalchemy.orm import Session
from study_engine.models import StudySession
from study_engine.schemas import StudySessionRecord
from typing import Any, Dict, List, Optional
import uuid

def create_study_session(db: Session, record: StudySessionRecord) -> StudySession:
    """Create a session record, assigning an id when missing"""
    session = StudySession(
        id=record.id or uuid.uuid4().hex,
        user_id=record.user_id,
        notebook_id=record.notebook_id,
        mode=record.mode.value,
        intensity=record.intensity.value if record.intensity else None,
        start_time=record.start_time,
        end_time=record.end_time,
        concepts=list(record.concepts),
        metrics=record.metrics,
        detailed_results=record.detailed_results,
        validated=record.validated,
        validation_score=record.validation_score
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session

def get_study_session(db: Session, session_id: str) -> Optional[StudySession]:
    """Get a session by id"""
    return db.get(StudySession, session_id)

def update_study_session(db: Session, session_id: str, fields: Dict[str, Any]) -> Optional[StudySession]:
    """Apply a partial update to a session"""
    session = get_study_session(db, session_id)
    if session:
        for key, value in fields.items():
            setattr(session, key, value)
        db.commit()
        db.refresh(session)
    return session

def get_study_sessions(db: Session, user_id: str, notebook_id: Optional[str] = None, limit: int = 50) -> List[StudySession]:
    """Get recent sessions for a user"""
    query = db.query(StudySession).filter(StudySession.user_id == user_id)
    if notebook_id:
        query = query.filter(StudySession.notebook_id == notebook_id)
    return query.order_by(StudySession.start_time.desc()).limit(limit).all()
