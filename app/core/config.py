import os
import logging
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class ReviewSettings(BaseModel):
    # Peer feedback count at which a reviewee's feedback is considered complete
    peer_feedback_target: int = Field(default=int(os.getenv("PEER_FEEDBACK_TARGET", "3")))
    calibration_min_justification: int = Field(default=int(os.getenv("CALIBRATION_MIN_JUSTIFICATION", "20")))


class Config(BaseModel):
    app_name: str = "Performance Review Service"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./reviews.db")

    # Review rules
    reviews: ReviewSettings = ReviewSettings()

    # Enterprise Architecture
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"
    user_id_header: str = "X-User-Id"

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "production" and settings.database_url.startswith("sqlite"):
    _logger.warning("DATABASE_URL points at SQLite in production; set it to a server database.")
