# app/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from app.core.settings import settings

# SQLite отдаёт соединение только создавшему потоку: FastAPI выполняет
# синхронные обработчики в пуле потоков
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# Создаем движок подключения к БД
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# Создаем фабрику сессий (scoped_session для потокобезопасности)
SessionLocal = scoped_session(
    sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )
)
