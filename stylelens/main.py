from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stylelens.config import logger

from .routers import router

# Initialize FastAPI application
app = FastAPI(
    title="StyleLens API",
    description="Image tagging, color extraction and AI fashion recommendations",
    version="1.0.0",
)

app.include_router(router)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


logger.info("StyleLens API initialized successfully")
