import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from database.connection import init_db

# Router Imports
from routes import players, stats

logger = logging.getLogger(__name__)

app = FastAPI(title="Player Stats Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(players.router)
app.include_router(stats.router)

@app.on_event("startup")
def startup_event():
    init_db()
    logger.info("Database tables ready")

@app.get("/health")
def health():
    return {"status": "ok"}
