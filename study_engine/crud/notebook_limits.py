from sqlalchemy.orm import Session
from study_engine.models import NotebookLimitsRow
from typing import Any, Dict, Optional

def get_notebook_limits(db: Session, user_id: str, notebook_id: str) -> Optional[NotebookLimitsRow]:
    """Get usage limits for a notebook"""
    return db.get(NotebookLimitsRow, (user_id, notebook_id))

def merge_notebook_limits(db: Session, user_id: str, notebook_id: str, fields: Dict[str, Any]) -> NotebookLimitsRow:
    """Write only the given fields, leaving the other groups untouched"""
    row = get_notebook_limits(db, user_id, notebook_id)
    if row is None:
        row = NotebookLimitsRow(user_id=user_id, notebook_id=notebook_id)
        db.add(row)

    for key, value in fields.items():
        if not hasattr(NotebookLimitsRow, key):
            raise ValueError(f"Unknown limits field: {key}")
        setattr(row, key, value)

    db.commit()
    db.refresh(row)
    return row
