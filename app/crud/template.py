from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.template import Template


def get_template(db: Session, template_id: int) -> Optional[Template]:
    return db.query(Template).filter(Template.id == template_id).first()


def get_templates(db: Session) -> List[Template]:
    return db.query(Template).order_by(Template.created_at.desc(), Template.id.desc()).all()


def create_template(db: Session, name: str) -> Template:
    db_template = Template(name=name, data=[])
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    return db_template
