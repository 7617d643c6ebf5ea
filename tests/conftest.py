import os
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from barbershop.core.config import Settings  # noqa: E402
from barbershop.database import Base  # noqa: E402
from barbershop.models.appointment import Appointment  # noqa: E402
from barbershop.models.availability import Availability  # noqa: E402,F401
from barbershop.models.slot import Slot  # noqa: E402

SHOP_DAY = date(2026, 3, 10)


@pytest.fixture
def session_factory():
    engines = []

    def make_session():
        engine = create_engine(
            'sqlite://',
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        engines.append(engine)
        return sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    yield make_session

    for engine in engines:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env='test',
        jwt_secret_key='test-secret',
        admin_email='owner@barbershop.test',
        admin_password='clippers',
        single_transaction_writes=True,
    )


def add_slot(db, start: time, end: time, slot_date: date = SHOP_DAY, **fields) -> Slot:
    fields.setdefault('is_booked', False)
    slot = Slot(date=slot_date, start_time=start, end_time=end, **fields)
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def add_booked_slot(db, start: time, end: time, slot_date: date = SHOP_DAY, service: str = 'hair'):
    appointment = Appointment(
        name='Luca',
        phone='+41791234567',
        service=service,
        date=slot_date,
        start_time=start,
        duration=60 if service == 'hair & beard' else 30,
        status='booked',
    )
    db.add(appointment)
    db.commit()
    slot = add_slot(db, start, end, slot_date, is_booked=True, appointment_id=appointment.id)
    db.refresh(appointment)
    return appointment, slot


@pytest.fixture
def slot_factory(db):
    return lambda start, end, **fields: add_slot(db, start, end, **fields)


@pytest.fixture
def booked_slot_factory(db):
    return lambda start, end, **fields: add_booked_slot(db, start, end, **fields)
