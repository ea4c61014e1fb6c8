"""
Pydantic schemas for the app shell HTTP API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class UserResponse(BaseModel):
    uid: str
    email: str
    display_name: Optional[str] = None


class StateResponse(BaseModel):
    initializing: bool
    stack: str
    routes: list[str]
    user: Optional[UserResponse] = None
    open_chat: Optional[str] = None


class SignupRequest(BaseModel):
    email: str = ""
    username: str = ""
    password: str = ""
    confirm_password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class MessageResponse(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: Literal["ok"]


class ItemRequest(BaseModel):
    text: str = ""


class ItemResponse(BaseModel):
    id: str
    text: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    pending: bool = False


class ItemListResponse(BaseModel):
    items: list[ItemResponse]
    loading: bool
    saving: bool
    editing_id: Optional[str] = None
    error: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    username: str
    is_contact: bool = False


class SearchResponse(BaseModel):
    results: list[ProfileResponse]


class ContactResponse(BaseModel):
    id: str
    contact_id: str
    username: str
    email: Optional[str] = None
    added_at: Optional[str] = None


class ContactListResponse(BaseModel):
    contacts: list[ContactResponse]
    loading: bool
    error: Optional[str] = None


class AddContactRequest(BaseModel):
    user_id: str


class SendMessageRequest(BaseModel):
    text: str = ""


class ChatMessageResponse(BaseModel):
    id: str
    text: str
    sender_id: str
    mine: bool
    time: str
    read: bool


class ChatResponse(BaseModel):
    conversation_id: str
    title: str
    status: str
    messages: list[ChatMessageResponse]
    error: Optional[str] = None
