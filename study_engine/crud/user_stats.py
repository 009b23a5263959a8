from sqlalchemy.orm import Session
from study_engine.models import UserStats
from typing import Any, Dict, Optional

def get_user_stats(db: Session, user_id: str) -> Optional[UserStats]:
    """Get study totals for a user"""
    return db.get(UserStats, user_id)

def merge_user_stats(db: Session, user_id: str, fields: Dict[str, Any]) -> UserStats:
    """Update study totals, creating the row on first use"""
    stats = get_user_stats(db, user_id)
    if stats is None:
        stats = UserStats(user_id=user_id)
        db.add(stats)
    for key, value in fields.items():
        setattr(stats, key, value)
    db.commit()
    db.refresh(stats)
    return stats
