#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Subject Notebooks
Subjects with titled notes

Version: 1.0.0
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from core.models import (
    Subject, SubjectNote, IdSequence, ValidationError, validate_text,
    SUBJECT_COLORS, DEFAULT_SUBJECT_COLOR,
)
from utils.datetime_utils import now_local

logger = logging.getLogger(__name__)

class SubjectNotFoundError(KeyError):
    pass

class NoteNotFoundError(KeyError):
    pass

class SubjectNotebook:
    """Collection of subjects and their notes"""

    def __init__(self, subjects: Optional[Iterable[Subject]] = None, ids: Optional[IdSequence] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.subjects: List[Subject] = list(subjects or [])
        self.clock = clock or now_local
        self.ids = ids or IdSequence()
        self.ids.observe(subject.id for subject in self.subjects)
        self.ids.observe(note.id for subject in self.subjects for note in subject.notes)

    def get(self, subject_id) -> Subject:
        for subject in self.subjects:
            if subject.id == subject_id:
                return subject
        raise SubjectNotFoundError(subject_id)

    def _replace(self, updated: Subject) -> None:
        self.subjects = [updated if s.id == updated.id else s for s in self.subjects]

    def create_subject(self, name: str, color: str = DEFAULT_SUBJECT_COLOR) -> Subject:
        name = validate_text(name, min_length=1, max_length=100, field_name="name")
        if color not in SUBJECT_COLORS:
            raise ValidationError(f"color must be one of: {SUBJECT_COLORS}")

        subject = Subject(id=self.ids.next(), name=name, color=color, notes=[], tasks=[])
        self.subjects.append(subject)
        logger.info(f"📚 Subject created: '{name}'")
        return subject

    def delete_subject(self, subject_id) -> Subject:
        subject = self.get(subject_id)
        self.subjects = [s for s in self.subjects if s.id != subject_id]
        logger.info(f"🗑️ Subject deleted: '{subject.name}' ({len(subject.notes)} notes)")
        return subject

    def save_note(self, subject_id, title: str, content: str = "", note_id=None) -> SubjectNote:
        """Create a note, or update title/content of an existing one"""
        subject = self.get(subject_id)
        title = validate_text(title, min_length=1, max_length=200, field_name="title")
        stamp = self.clock().isoformat()

        if note_id is None:
            note = SubjectNote(id=self.ids.next(), title=title, content=content or "",
                               created_at=stamp, updated_at=stamp)
            notes = subject.notes + [note]
        else:
            existing = subject.get_note(note_id)
            if existing is None:
                raise NoteNotFoundError(note_id)
            note = replace(existing, title=title, content=content or "", updated_at=stamp)
            notes = [note if n.id == note_id else n for n in subject.notes]

        self._replace(replace(subject, notes=notes))
        return note

    def delete_note(self, subject_id, note_id) -> SubjectNote:
        subject = self.get(subject_id)
        note = subject.get_note(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        self._replace(replace(subject, notes=[n for n in subject.notes if n.id != note_id]))
        return note

    def search(self, query: str) -> List[Subject]:
        """Subjects whose name contains query, case-insensitively"""
        needle = (query or "").strip().lower()
        if not needle:
            return list(self.subjects)
        return [s for s in self.subjects if needle in s.name.lower()]

__all__ = ['SubjectNotebook', 'SubjectNotFoundError', 'NoteNotFoundError']
