import logging

from skullking.models import Message, Room, RoomPlayer, User

logger = logging.getLogger(__name__)


def purge_users(session) -> int:
    """Delete every user and the rooms they own. Returns the number of users removed."""
    for room in session.query(Room).filter(Room.owner_id.isnot(None)).all():
        session.delete(room)
    session.flush()
    # Rows in rooms owned by nobody keep their denormalised names
    session.query(RoomPlayer).filter(RoomPlayer.user_id.isnot(None)).update(
        {RoomPlayer.user_id: None}, synchronize_session=False
    )
    session.query(Message).filter(Message.user_id.isnot(None)).update(
        {Message.user_id: None}, synchronize_session=False
    )
    count = session.query(User).delete(synchronize_session=False)
    logger.info(f"Purged {count} user(s)")
    return count
