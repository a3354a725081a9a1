from friendping.models.friend import Friend
from friendping.models.friend_signal import FriendSignal
from friendping.models.generated_code import GeneratedCode
from friendping.models.message import Message

__all__ = ["Friend", "FriendSignal", "GeneratedCode", "Message"]
