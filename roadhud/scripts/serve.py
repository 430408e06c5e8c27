"""
Run the HUD web app.

Usage:
    python -m roadhud.scripts.serve            # http://127.0.0.1:8000
    VISION_ADAPTER=mock SPEECH_ADAPTER=mock python -m roadhud.scripts.serve
"""
import os

import uvicorn


def main():
    uvicorn.run(
        "roadhud.web.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
