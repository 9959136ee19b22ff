# mafia_nights/api/v1/__init__.py

from fastapi import APIRouter

from . import auth, profiles, rooms, chat, changes, diagnostics

api_router = APIRouter()

# それぞれの router 側で prefix を持っている前提にする
api_router.include_router(auth.router)         # /auth
api_router.include_router(profiles.router)     # /profiles
api_router.include_router(rooms.router)        # /rooms, /rooms/{id}/players
api_router.include_router(chat.router)         # /rooms/{id}/messages
api_router.include_router(changes.router)      # /changes
api_router.include_router(diagnostics.router)  # /rpc
