from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_NAME: str = "ErrorKube"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Snapshot
    SNAPSHOT_SOURCE: str = "api"  # "api" or "mongo"
    API_BASE_URL: str = "http://localhost:8080"
    SNAPSHOT_PATH: str = "/api/events"
    SNAPSHOT_TIMEOUT: float = 30.0

    # Live feed
    STREAM_URL: str = "ws://localhost:8080/events"

    # MongoDB
    MONGO_URI: str = "mongodb://mongo-service.default.svc.cluster.local:27017"
    MONGO_DB_NAME: str = "k8sEvents"
    MONGO_COLL_NAME: str = "events"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
