from .conversation import ConversationManager
from .manager import Checkpoint, ContextManager
from .store import MasterContextStore
from .token_manager import TokenManager, TruncationResult

__all__ = [
    "Checkpoint",
    "ContextManager",
    "ConversationManager",
    "MasterContextStore",
    "TokenManager",
    "TruncationResult",
]
