from dotenv import load_dotenv
import os
from pymongo import AsyncMongoClient

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"))

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "devhub")

POSTS_COLLECTION = "posts"
USERS_COLLECTION = "users"


def create_client(uri: str = MONGO_URI) -> AsyncMongoClient:
    # Connection is lazy, nothing is sent until the first operation
    return AsyncMongoClient(uri, tz_aware=True)


def get_database(client: AsyncMongoClient, name: str = DB_NAME):
    return client[name]
