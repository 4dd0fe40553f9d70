"""FastAPI dependencies."""
from typing import Generator

from sqlalchemy.orm import Session

from salon_crm.backend.database import session_scope


def get_db() -> Generator[Session, None, None]:
    with session_scope() as sess:
        yield sess
