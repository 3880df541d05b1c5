"""Message collection API routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..schemas import Message, MessageCreate
from ..services import RemoteStore, StoreError, SubmissionError, get_remote_store

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=List[Message])
def list_messages(store: RemoteStore = Depends(get_remote_store)) -> List[Message]:
    """Return every message ordered by server timestamp."""
    try:
        return store.list_messages()
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Message store unavailable") from exc


@router.post("", response_model=Message, status_code=status.HTTP_201_CREATED)
def create_message(payload: MessageCreate, store: RemoteStore = Depends(get_remote_store)) -> Message:
    if not payload.has_content():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message requires text or an image")
    try:
        return store.add_message(payload)
    except SubmissionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to store message") from exc


__all__ = ["router"]
