from sqlalchemy.orm import Session
from study_engine.models import ConceptItem
from study_engine.schemas import Concept
from typing import List

def list_concepts(db: Session, notebook_id: str) -> List[ConceptItem]:
    """Get concepts of a notebook in encounter order"""
    return db.query(ConceptItem).filter(
        ConceptItem.notebook_id == notebook_id
    ).order_by(ConceptItem.position, ConceptItem.id).all()

def add_concepts(db: Session, notebook_id: str, concepts: List[Concept]) -> int:
    """Append concepts to a notebook, skipping ids already present"""
    position = db.query(ConceptItem).filter(ConceptItem.notebook_id == notebook_id).count()
    added = 0
    for concept in concepts:
        if db.get(ConceptItem, concept.id):
            continue
        db.add(ConceptItem(
            id=concept.id,
            notebook_id=notebook_id,
            position=position,
            term=concept.term or concept.id,
            definition=concept.definition
        ))
        position += 1
        added += 1
    db.commit()
    return added
