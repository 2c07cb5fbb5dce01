import logging

from fastapi import FastAPI
from helpai.api.endpoints import auth
from helpai.api.endpoints import conversations
from helpai.api.endpoints import chat


from fastapi.middleware.cors import CORSMiddleware
from helpai.core.config import Settings
from helpai.storage.factory import build_storage, configure_storage

settings = Settings()
logging.basicConfig(level=settings.log_level.upper())

# El backend de almacenamiento se elige una sola vez, al arrancar
configure_storage(build_storage(settings))

app = FastAPI(title="Help AI")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(conversations.router, prefix="/api/conversations", tags=["conversations"])
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
