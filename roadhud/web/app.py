from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from roadhud.services.api import app as api_app

root = Path(__file__).resolve().parent


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # mounted sub-apps don't get lifespan events on their own
    async with api_app.router.lifespan_context(api_app):
        yield


app = FastAPI(title="roadhud web", lifespan=lifespan)


# "/" must be registered BEFORE the catch-all mount("") or it gets intercepted
@app.get("/", response_class=HTMLResponse)
def index():
    return (root / "templates" / "index.html").read_text(encoding="utf-8")


# mount API sub-app last, the catch-all prefix "" would shadow routes above it
app.mount("", api_app)
