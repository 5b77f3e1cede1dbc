# taskboard/core/config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # 토큰
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

    # 쿠키 (웹 혼용 환경에서만)
    AUTH_SET_COOKIE_ON_POST: bool = _env_bool("AUTH_SET_COOKIE_ON_POST")
    COOKIE_SECURE: bool = _env_bool("COOKIE_SECURE")
    COOKIE_SAMESITE: str = os.getenv("COOKIE_SAMESITE", "lax")

    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()
    ]

    # 실시간 피드
    FEED_HEARTBEAT_SEC: float = float(os.getenv("FEED_HEARTBEAT_SEC", "15"))
    FEED_SEND_BUFFER: int = int(os.getenv("FEED_SEND_BUFFER", "100"))

    # 클라이언트 런타임
    TASKBOARD_API_URL: str = os.getenv("TASKBOARD_API_URL", "http://localhost:8000")

    @property
    def cookie_max_age(self) -> int:
        return 60 * self.ACCESS_TOKEN_EXPIRE_MINUTES


settings = Settings()
