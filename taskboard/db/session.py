# taskboard/db/session.py
import os
import logging
from urllib.parse import quote_plus
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.engine import url as sa_url  # make_url 사용
from contextlib import contextmanager

log = logging.getLogger(__name__)

DEV_SQLITE_URL = "sqlite:///./taskboard.db"


def _mask(url: str) -> str:
    """로그 출력용 마스킹 (비밀번호 숨김)"""
    if "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    if "@" in rest and ":" in rest.split("@", 1)[0]:
        creds, tail = rest.split("@", 1)
        user = creds.split(":", 1)[0]
        return f"{scheme}://{user}:***@{tail}"
    return url


def _strip_outer_quotes(s: str) -> str:
    if not s:
        return s
    if (s[0] == s[-1]) and s[0] in ("'", '"', "`"):
        return s[1:-1].strip()
    return s


def _build_db_url() -> str:
    url = os.getenv("DATABASE_URL", "").strip()
    url = _strip_outer_quotes(url)

    # 1) postgres:// → postgresql+psycopg2:// 로 교정
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)

    # 2) 비었으면 POSTGRES_*로 구성, 그것도 없으면 dev 에서만 sqlite
    if not url:
        host = os.getenv("POSTGRES_HOST", "").strip()
        port = os.getenv("POSTGRES_PORT", "5432").strip()
        db   = os.getenv("POSTGRES_DB", "").strip()
        user = os.getenv("POSTGRES_USER", "").strip()
        pwd  = os.getenv("POSTGRES_PASSWORD", "").strip()

        if host and db and user:
            # 특수문자 있는 비번은 URL 인코딩
            if any(ch in pwd for ch in "@:/?#"):
                pwd = quote_plus(pwd)
            url = f"postgresql+psycopg2://{user}:{pwd}@{host}:{port}/{db}"
        elif os.getenv("ENV", "dev") == "dev":
            url = DEV_SQLITE_URL
        else:
            raise RuntimeError("DATABASE_URL 비어 있음 + POSTGRES_*도 부족함")

    # 3) 최종 파싱 검증
    try:
        sa_url.make_url(url)
    except Exception as e:
        raise RuntimeError(f"잘못된 DATABASE_URL 형식: {repr(url)} ({e})")

    log.info("DB URL 적용: %s", _mask(url))
    return url


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # 라우터가 threadpool 에서 돌기 때문에 필요
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,   # 30분마다 재활성화
        "pool_size": 5,
        "max_overflow": 5,
    }


DATABASE_URL = _build_db_url()
engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))


def get_session():
    """FastAPI Depends(get_session)에서 쓰는 generator."""
    with Session(engine) as s:
        yield s


def create_all_tables():
    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope():
    """
    WebSocket/백그라운드 작업처럼 Depends(get_session) 못 쓰는 구간에서 쓰는 세션 컨텍스트.
    """
    s = Session(engine)
    try:
        yield s
    finally:
        s.close()
