import os
import uvicorn

if __name__ == "__main__":
    from dotenv import load_dotenv

    load_dotenv()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3030"))
    workers = int(os.getenv("WORKERS", "1"))

    print(f"Starting Player Stats Service on http://{host}:{port}")

    # SQLite deployments must stay on one worker: merges of a key are only
    # serialized within a process unless the database honours row locks.
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=False,
        workers=workers,
        log_level=os.getenv("LOG_LEVEL", "info")
    )
