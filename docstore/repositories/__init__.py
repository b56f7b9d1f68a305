"""Repository layer for data access."""

from docstore.repositories.user_repository import User, UserRepository
from docstore.repositories.node_repository import Node, NodeRepository
from docstore.repositories.collaborator_repository import Collaborator, CollaboratorRepository
from docstore.repositories.event_repository import EventRepository, OutboundEvent

__all__ = [
    "User",
    "UserRepository",
    "Node",
    "NodeRepository",
    "Collaborator",
    "CollaboratorRepository",
    "EventRepository",
    "OutboundEvent",
]
