from contextlib import contextmanager

from sqlalchemy.orm import Session


@contextmanager
def session_scope(bind):
    """Open a session on ``bind`` for one unit of work.

    Commits when the block exits cleanly, rolls back on error and always
    closes the session. Request handlers use ``db.session`` instead; this is
    for CLI commands and background jobs that run outside a request.
    """
    session = Session(bind=bind)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
