from sqlalchemy import Column, Integer, String, Text
from study_engine.database import Base

class ConceptItem(Base):
    """Concept content, owned by the surrounding application"""
    __tablename__ = "concepts"

    id = Column(String, primary_key=True)
    notebook_id = Column(String, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # encounter order within the notebook
    term = Column(String, nullable=False)
    definition = Column(Text)
