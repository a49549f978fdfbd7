#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Notes API
Daily notes and the subject notebook

Version: 1.0.0
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from core.models import SUBJECT_COLORS
from dashboard.dependencies import get_signed_in_session
from dashboard.schemas import NoteUpdate, SubjectCreate, SubjectNoteSave
from services.session import StudySession

router = APIRouter(prefix="/api", tags=["notes"])

# ===== DAILY NOTES =====

@router.get("/notes", response_model=Dict[str, Any])
async def get_notes(session: StudySession = Depends(get_signed_in_session)):
    return {"notes": dict(session.state.notes)}

@router.get("/notes/{date_str}", response_model=Dict[str, Any])
async def get_note(date_str: str, session: StudySession = Depends(get_signed_in_session)):
    return {"date": date_str, "content": session.state.notes.get(date_str, "")}

@router.put("/notes/{date_str}", response_model=Dict[str, Any])
async def update_note(date_str: str, request: NoteUpdate,
                      session: StudySession = Depends(get_signed_in_session)):
    notes = session.update_note(date_str, request.content)
    return {"date": date_str, "content": request.content, "total": len(notes)}

# ===== SUBJECTS =====

@router.get("/subjects", response_model=Dict[str, Any])
async def get_subjects(
    q: Optional[str] = Query(None, description="Filter by subject name"),
    session: StudySession = Depends(get_signed_in_session)
):
    subjects = session.search_subjects(q) if q else session.state.subjects.subjects
    return {"subjects": [subject.to_dict() for subject in subjects], "colors": list(SUBJECT_COLORS)}

@router.post("/subjects", response_model=Dict[str, Any], status_code=201)
async def create_subject(request: SubjectCreate, session: StudySession = Depends(get_signed_in_session)):
    subject = session.create_subject(request.name, request.color)
    return {"subject": subject.to_dict()}

@router.delete("/subjects/{subject_id}", response_model=Dict[str, Any])
async def delete_subject(subject_id: int, session: StudySession = Depends(get_signed_in_session)):
    subject = session.delete_subject(subject_id)
    return {"deleted": subject.to_dict()}

@router.post("/subjects/{subject_id}/notes", response_model=Dict[str, Any])
async def save_subject_note(subject_id: int, request: SubjectNoteSave,
                            session: StudySession = Depends(get_signed_in_session)):
    """Create a note, or update it when noteId is given"""
    note = session.save_subject_note(subject_id, request.title, request.content, request.note_id)
    return {"note": note.to_dict()}

@router.delete("/subjects/{subject_id}/notes/{note_id}", response_model=Dict[str, Any])
async def delete_subject_note(subject_id: int, note_id: int,
                              session: StudySession = Depends(get_signed_in_session)):
    note = session.delete_subject_note(subject_id, note_id)
    return {"deleted": note.to_dict()}
