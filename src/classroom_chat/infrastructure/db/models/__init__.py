"""Import all models so Base.metadata knows every table."""
from classroom_chat.infrastructure.db.models.attachment import AttachmentModel
from classroom_chat.infrastructure.db.models.conversation import ConversationModel
from classroom_chat.infrastructure.db.models.message import MessageModel
from classroom_chat.infrastructure.db.models.participant import ParticipantModel

__all__ = [
    "AttachmentModel",
    "ConversationModel",
    "MessageModel",
    "ParticipantModel",
]
