from sqlalchemy import Column, String, Float, Boolean, DateTime, JSON
from datetime import datetime
from study_engine.database import Base

class StudySession(Base):
    """Record of one study session attempt"""
    __tablename__ = "study_sessions"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    notebook_id = Column(String, nullable=False, index=True)

    mode = Column(String, nullable=False)  # "smart", "free" or "quiz"
    intensity = Column(String)  # smart/free only

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime)  # null while the session is open

    concepts = Column(JSON, nullable=False)  # concept ids drawn at start
    metrics = Column(JSON)
    detailed_results = Column(JSON)

    validated = Column(Boolean)  # smart only, set once by the post-session quiz
    validation_score = Column(Float)

    created_at = Column(DateTime, default=datetime.utcnow)
