import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.database import Base, SessionLocal, engine, ensure_appointment_schema
from backend.models import appointment, doctor, patient  # noqa: F401
from backend.routes import appointment_routes, doctor_routes, patient_routes
from backend.seed import seed_sample_data

logging.basicConfig(level=config.LOG_LEVEL)

config.validate_runtime_config()

app = FastAPI(title='Doctor Appointment Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        if config.SEED_SAMPLE_DATA:
            db = SessionLocal()
            try:
                seed_sample_data(db)
            finally:
                db.close()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/api/health')
def health():
    return {
        'status': 'OK',
        'message': 'Appointment Booking API is running',
        'timestamp': datetime.now().isoformat(),
    }


app.include_router(appointment_routes.router, prefix='/api/appointments')
app.include_router(doctor_routes.router, prefix='/api/doctors')
app.include_router(patient_routes.router, prefix='/api/patients')
