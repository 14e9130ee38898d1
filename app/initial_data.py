# app/initial_data.py

import asyncio
import logging
from sqlalchemy.orm import Session
from app.database import SessionLocal, engine
from app.models import Base
from app.crud.user import create_user as crud_create_user, get_user_by_email
from app.core.enums import UserRole
from app.core.settings import settings
from app.core.exceptions import BaseAppException

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("FormBuilder.InitialData")

async def create_initial_admin_user(db: Session) -> None:
    logger.info("Checking if initial admin user needs to be created...")
    superuser_email = settings.FIRST_SUPERUSER_EMAIL
    superuser_password = settings.FIRST_SUPERUSER_PASSWORD
    if not superuser_email or not superuser_password:
        logger.warning("FIRST_SUPERUSER_EMAIL / FIRST_SUPERUSER_PASSWORD are not set. Skipping.")
        return

    admin_user = get_user_by_email(db, superuser_email)
    if not admin_user:
        logger.info(f"Admin user '{superuser_email}' not found. Creating...")
        user_data = {
            "name": settings.FIRST_SUPERUSER_NAME,
            "email": superuser_email,
            "password": superuser_password,
            "role": UserRole.ADMIN,
        }
        try:
            crud_create_user(db=db, data=user_data)
            logger.info(f"Admin user '{superuser_email}' created successfully.")
        except BaseAppException as e:
            logger.error(f"Failed to create admin user: {e.detail}")
    else:
        logger.info(f"Admin user '{superuser_email}' already exists. No action taken.")

async def main() -> None:
    logger.info("Initializing initial data (admin user)...")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        await create_initial_admin_user(db)
    finally:
        db.close()
    logger.info("Finished initial data setup.")

if __name__ == "__main__":
    from dotenv import load_dotenv
    load_dotenv()

    asyncio.run(main())
