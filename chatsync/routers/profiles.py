"""Profile collection API routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..schemas import Profile, ProfileUpdate
from ..services import RemoteStore, StoreError, SubmissionError, get_remote_store

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=List[Profile])
def list_profiles(store: RemoteStore = Depends(get_remote_store)) -> List[Profile]:
    try:
        return store.list_profiles()
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Profile store unavailable") from exc


@router.get("/{identity}", response_model=Profile)
def retrieve_profile(identity: str, store: RemoteStore = Depends(get_remote_store)) -> Profile:
    try:
        profile = store.get_profile(identity)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Profile store unavailable") from exc
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.put("/{identity}", response_model=Profile)
def upsert_profile(
    identity: str,
    payload: ProfileUpdate,
    store: RemoteStore = Depends(get_remote_store),
) -> Profile:
    """Merge the supplied fields into the identity's profile, creating it if needed."""
    try:
        return store.upsert_profile(identity, payload)
    except SubmissionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to store profile") from exc


__all__ = ["router"]
