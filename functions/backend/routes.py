"""
HTTP routes exposing the app shell's screens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.chat import ChatScreen
from backend.dependencies import get_shell
from backend.items import ItemListScreen
from backend.schemas import (
    AddContactRequest,
    ChatMessageResponse,
    ChatResponse,
    ContactListResponse,
    ContactResponse,
    ItemListResponse,
    ItemRequest,
    ItemResponse,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    SearchResponse,
    SendMessageRequest,
    SignupRequest,
    StateResponse,
    StatusResponse,
    UserResponse,
)
from backend.shell import AppShell

logger = logging.getLogger(__name__)

router = APIRouter()


def _items_payload(screen: ItemListScreen) -> ItemListResponse:
    return ItemListResponse(
        items=[
            ItemResponse(
                id=entry.id,
                text=entry.text,
                created_at=entry.created_at,
                updated_at=entry.updated_at,
                pending=entry.is_pending,
            )
            for entry in screen.items
        ],
        loading=screen.loading,
        saving=screen.saving,
        editing_id=screen.editing_id,
        error=screen.error,
    )


def _chat_payload(chat: ChatScreen) -> ChatResponse:
    return ChatResponse(
        conversation_id=chat.conversation_id,
        title=chat.title,
        status=chat.status_line,
        messages=[
            ChatMessageResponse(
                id=message.id,
                text=message.text,
                sender_id=message.sender_id,
                mine=chat.is_mine(message),
                time=chat.time_label(message),
                read=message.read,
            )
            for message in chat.messages
        ],
        error=chat.error,
    )


@router.get("/state", response_model=StateResponse)
def state(shell: AppShell = Depends(get_shell)):
    user = shell.user
    return StateResponse(
        initializing=shell.initializing,
        stack=shell.stack,
        routes=[route.value for route in shell.routes],
        user=UserResponse(
            uid=user.uid, email=user.email, display_name=user.display_name
        )
        if user
        else None,
        open_chat=shell.chat.contact.contact_id if shell.chat else None,
    )


@router.post("/signup", response_model=MessageResponse, status_code=201)
def signup(payload: SignupRequest, shell: AppShell = Depends(get_shell)):
    message = shell.signup.submit(
        payload.email, payload.username, payload.password, payload.confirm_password
    )
    return MessageResponse(message=message)


@router.post("/login", response_model=UserResponse)
def login(payload: LoginRequest, shell: AppShell = Depends(get_shell)):
    user = shell.login.submit(payload.email, payload.password)
    return UserResponse(uid=user.uid, email=user.email, display_name=user.display_name)


@router.post("/logout", response_model=StatusResponse)
def logout(shell: AppShell = Depends(get_shell)):
    shell.logout()
    return StatusResponse(status="ok")


@router.get("/items", response_model=ItemListResponse)
def list_items(shell: AppShell = Depends(get_shell)):
    return _items_payload(shell.items)


@router.post("/items", response_model=ItemResponse, status_code=201)
def create_item(payload: ItemRequest, shell: AppShell = Depends(get_shell)):
    screen = shell.items
    screen.cancel_edit()
    entry = screen.save(payload.text)
    return ItemResponse(
        id=entry.id,
        text=entry.text,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
        pending=entry.is_pending,
    )


@router.put("/items/{entry_id}", response_model=ItemResponse)
def update_item(
    entry_id: str, payload: ItemRequest, shell: AppShell = Depends(get_shell)
):
    screen = shell.items
    if screen.find(entry_id) is None:
        raise HTTPException(status_code=404, detail="Item not found")
    entry = screen.update(entry_id, payload.text)
    return ItemResponse(
        id=entry.id,
        text=entry.text,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


@router.delete("/items/{entry_id}", response_model=StatusResponse)
def delete_item(entry_id: str, shell: AppShell = Depends(get_shell)):
    screen = shell.items
    if screen.find(entry_id) is None:
        raise HTTPException(status_code=404, detail="Item not found")
    # The client has already asked the user to confirm.
    screen.request_delete(entry_id).confirm()
    return StatusResponse(status="ok")


@router.delete("/items", response_model=StatusResponse)
def clear_items(shell: AppShell = Depends(get_shell)):
    pending = shell.items.request_clear()
    if pending is not None:
        pending.confirm()
    return StatusResponse(status="ok")


@router.get("/contacts", response_model=ContactListResponse)
def list_contacts(shell: AppShell = Depends(get_shell)):
    screen = shell.contacts
    return ContactListResponse(
        contacts=[
            ContactResponse(
                id=contact.id,
                contact_id=contact.contact_id,
                username=contact.username,
                email=contact.email,
                added_at=contact.added_at,
            )
            for contact in screen.contacts
        ],
        loading=screen.loading,
        error=screen.error,
    )


@router.post("/contacts", response_model=MessageResponse, status_code=201)
def add_contact(payload: AddContactRequest, shell: AppShell = Depends(get_shell)):
    return MessageResponse(message=shell.contacts.add(payload.user_id))


@router.get("/users/search", response_model=SearchResponse)
def search_users(q: str = Query(""), shell: AppShell = Depends(get_shell)):
    screen = shell.contacts
    results = screen.search(q)
    return SearchResponse(
        results=[
            ProfileResponse(
                id=profile.id,
                email=profile.email,
                username=profile.username,
                is_contact=screen.is_contact(profile.id),
            )
            for profile in results
        ]
    )


@router.get("/chats/{contact_id}/messages", response_model=ChatResponse)
def read_chat(contact_id: str, shell: AppShell = Depends(get_shell)):
    return _chat_payload(shell.open_chat(contact_id))


@router.post(
    "/chats/{contact_id}/messages", response_model=ChatResponse, status_code=201
)
def send_message(
    contact_id: str, payload: SendMessageRequest, shell: AppShell = Depends(get_shell)
):
    chat = shell.open_chat(contact_id)
    chat.send(payload.text)
    return _chat_payload(chat)


@router.delete("/chats/{contact_id}", response_model=StatusResponse)
def close_chat(contact_id: str, shell: AppShell = Depends(get_shell)):
    if shell.chat and shell.chat.contact.contact_id == contact_id:
        shell.close_chat()
    return StatusResponse(status="ok")
