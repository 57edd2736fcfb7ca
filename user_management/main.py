import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from user_management.core import config
from user_management.core.logging_config import setup_logging
from user_management.database import Base, engine, ensure_user_schema
from user_management.models import user  # noqa: F401
from user_management.routes import user_routes

app = FastAPI(title='User Management API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'User Management API Running'}


app.include_router(user_routes.router, prefix='/api/v1/users')
