from contextlib import asynccontextmanager

from tortoise import Tortoise
import os
from dotenv import load_dotenv

load_dotenv()

TORTOISE_CONFIG = {
    'connections': {
        'default': os.getenv("DATABASE_URL", "sqlite://db.sqlite3")
    },
    "apps": {
        "models": {
            "models": [
                "models.hubspot_install",
                "aerich.models",
            ]
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}



@asynccontextmanager
async def lifespan(_):
    await Tortoise.init(config=TORTOISE_CONFIG)
    yield
    await Tortoise.close_connections()
