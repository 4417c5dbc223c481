from dotenv import load_dotenv
load_dotenv()

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from helpers.errors import register_error_handlers
from helpers.tortoise_config import lifespan

from controllers import (
    gamification_controller,
    hubspot_auth_controller,
    hubspot_controller,
    webhook_controller,
)

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

app = FastAPI(lifespan=lifespan)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(hubspot_auth_controller.router, prefix="/api", tags=["HubSpot OAuth"])
app.include_router(hubspot_controller.router, prefix="/api", tags=["HubSpot Installs"])
app.include_router(gamification_controller.router, prefix="/api", tags=["Gamification"])
app.include_router(webhook_controller.router, prefix="/api", tags=["Webhooks"])

@app.get("/")
def greetings():
    return {"Message": "HubSpot gamification backend is running"}
