# Models package init
"""
Importing the package registers every mapped class with Base.metadata, so
string relationship targets ("User", "Note") always resolve.
"""

from notekeep.models.user import User
from notekeep.models.note import Note, NoteTag, NoteVersion

__all__ = ["User", "Note", "NoteTag", "NoteVersion"]
