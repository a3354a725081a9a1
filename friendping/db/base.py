from friendping.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from friendping.models.friend import Friend  # noqa: F401
from friendping.models.friend_signal import FriendSignal  # noqa: F401
from friendping.models.message import Message  # noqa: F401
from friendping.models.generated_code import GeneratedCode  # noqa: F401

__all__ = ["Base"]
