from sqlalchemy.orm import Session

from vqueue.models.business import Business
from vqueue.services.business_service import create_business


def seed_demo(db: Session):
    if db.query(Business).filter(Business.slug == 'demo').first():
        return
    create_business(db, slug='demo', name='Demo Coffee', password='1234')
