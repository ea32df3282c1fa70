"""Dependency wiring for API endpoints."""

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.core.db import MongoTransactionManager, get_client, get_database
from app.core.geocoding import GeocodingService, get_geocoding_service
from app.database.repositories import RegionRepository, UserRepository
from app.services.consistency import ConsistencyEngine
from app.services.regions import RegionService
from app.services.users import UserService


def get_transaction_manager() -> MongoTransactionManager:
    return MongoTransactionManager(get_client(), enabled=settings.MONGODB_TRANSACTIONS)


def get_user_repository(
    database: AsyncIOMotorDatabase = Depends(get_database),
) -> UserRepository:
    return UserRepository(database)


def get_region_repository(
    database: AsyncIOMotorDatabase = Depends(get_database),
) -> RegionRepository:
    return RegionRepository(database)


def get_consistency_engine(
    users: UserRepository = Depends(get_user_repository),
    regions: RegionRepository = Depends(get_region_repository),
    transactions: MongoTransactionManager = Depends(get_transaction_manager),
    geocoder: GeocodingService = Depends(get_geocoding_service),
) -> ConsistencyEngine:
    return ConsistencyEngine(
        geocoder=geocoder,
        users=users,
        regions=regions,
        transactions=transactions,
    )


def get_user_service(
    users: UserRepository = Depends(get_user_repository),
    engine: ConsistencyEngine = Depends(get_consistency_engine),
) -> UserService:
    return UserService(users, engine)


def get_region_service(
    regions: RegionRepository = Depends(get_region_repository),
    users: UserRepository = Depends(get_user_repository),
    engine: ConsistencyEngine = Depends(get_consistency_engine),
) -> RegionService:
    return RegionService(regions, users, engine)
