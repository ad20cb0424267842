import logging

from motor.motor_asyncio import AsyncIOMotorClient
from errorkube.config import settings

class Database:
    client: AsyncIOMotorClient = None

    def connect(self):
        self.client = AsyncIOMotorClient(settings.MONGO_URI)
        logging.info(f"Connected to MongoDB at {settings.MONGO_URI}")

    def close(self):
        if self.client:
            self.client.close()
            self.client = None
            logging.info("Disconnected from MongoDB")

    def get_db(self):
        if self.client is None:
            self.connect()
        return self.client[settings.MONGO_DB_NAME]

    def get_collection(self, name: str):
        return self.get_db()[name]

db = Database()

def get_event_collection():
    return db.get_collection(settings.MONGO_COLL_NAME)
