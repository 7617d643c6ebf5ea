import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from barbershop.core.config import get_settings, validate_runtime_config
from barbershop.database import Base, engine, ensure_appointment_schema, ensure_slot_schema
from barbershop.models import appointment, availability, slot  # noqa: F401
from barbershop.routes import admin_routes, auth_routes, booking_routes

settings = get_settings()
validate_runtime_config(settings)

app = FastAPI(title='Barbershop Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_slot_schema()
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Barbershop Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(booking_routes.router, prefix='/booking')
app.include_router(admin_routes.router, prefix='/admin')
