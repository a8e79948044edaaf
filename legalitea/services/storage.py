# storage.py
import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from upstash_redis import Redis

from legalitea.config import Settings
from legalitea.services.rate_limiter import normalize_email

logger = logging.getLogger(__name__)

DEFAULT_TTL_HOURS = 24


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SavedAnalysis:
    id: str
    email: str
    original_text: str
    analysis_result: Dict[str, Any]
    document_type: str
    created_at: datetime
    expires_at: datetime
    saved: bool = True

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["expires_at"] = self.expires_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedAnalysis":
        return cls(
            id=data["id"],
            email=data["email"],
            original_text=data.get("original_text", ""),
            analysis_result=data.get("analysis_result") or {},
            document_type=data.get("document_type", "unknown"),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            saved=data.get("saved", True),
        )


def build_record(
    email: str,
    analysis: Dict[str, Any],
    original_text: Any,
    document_type: Any,
    ttl_hours: int,
    now: Optional[datetime] = None,
) -> SavedAnalysis:
    created_at = now or _utcnow()
    # Metadata arrives as client JSON; non-string values are dropped
    if not isinstance(original_text, str):
        original_text = ""
    if not isinstance(document_type, str) or not document_type:
        document_type = "unknown"
    return SavedAnalysis(
        id=str(uuid.uuid4()),
        email=normalize_email(email),
        original_text=original_text,
        analysis_result=analysis,
        document_type=document_type,
        created_at=created_at,
        expires_at=created_at + timedelta(hours=ttl_hours),
    )


# --- In-memory storage ---
class InMemoryAnalysisStore:
    """Saved analyses kept in process memory; expired records vanish on read."""

    backend = "memory"

    def __init__(self, ttl_hours: int = DEFAULT_TTL_HOURS, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.ttl_hours = ttl_hours
        self._clock = clock
        self._records: Dict[str, SavedAnalysis] = {}
        self._lock = threading.Lock()

    def save(
        self,
        email: str,
        analysis: Dict[str, Any],
        original_text: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> SavedAnalysis:
        record = build_record(email, analysis, original_text, document_type, self.ttl_hours, now=self._clock())
        with self._lock:
            self._records[record.id] = record
        logger.info("Saved analysis %s for %s in memory", record.id, record.email)
        return record

    def get(self, analysis_id: str) -> Optional[SavedAnalysis]:
        with self._lock:
            record = self._records.get(analysis_id)
            if record is None:
                return None
            if record.is_expired(self._clock()):
                del self._records[analysis_id]
                return None
            return record

    def delete(self, analysis_id: str) -> bool:
        with self._lock:
            return self._records.pop(analysis_id, None) is not None

    def list_by_email(self, email: str) -> List[SavedAnalysis]:
        normalized = normalize_email(email)
        now = self._clock()
        with self._lock:
            records = [
                record
                for record in self._records.values()
                if record.email == normalized and not record.is_expired(now)
            ]
        return sorted(records, key=lambda record: record.created_at, reverse=True)


# --- Upstash Redis storage ---
class RedisAnalysisStore:
    """Saved analyses in Upstash Redis with a TTL; falls back to memory on Redis errors."""

    backend = "redis"

    def __init__(
        self,
        client: Any,
        ttl_hours: int = DEFAULT_TTL_HOURS,
        *,
        fallback: Optional[InMemoryAnalysisStore] = None,
    ) -> None:
        self.client = client
        self.ttl_hours = ttl_hours
        self.fallback = fallback or InMemoryAnalysisStore(ttl_hours)

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_hours * 3600

    @staticmethod
    def _record_key(analysis_id: str) -> str:
        return f"analysis:{analysis_id}"

    @staticmethod
    def _email_key(email: str) -> str:
        return f"analyses:{normalize_email(email)}"

    def save(
        self,
        email: str,
        analysis: Dict[str, Any],
        original_text: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> SavedAnalysis:
        record = build_record(email, analysis, original_text, document_type, self.ttl_hours)
        try:
            self.client.set(self._record_key(record.id), json.dumps(record.to_dict()), ex=self.ttl_seconds)
            self.client.sadd(self._email_key(record.email), record.id)
            self.client.expire(self._email_key(record.email), self.ttl_seconds)
        except Exception as exc:
            logger.warning("Redis error while saving analysis, falling back to memory: %s", exc)
            return self.fallback.save(email, analysis, original_text, document_type)
        logger.info("Saved analysis %s for %s in Redis", record.id, record.email)
        return record

    def get(self, analysis_id: str) -> Optional[SavedAnalysis]:
        try:
            raw = self.client.get(self._record_key(analysis_id))
        except Exception as exc:
            logger.warning("Redis error while reading analysis %s: %s", analysis_id, exc)
            return self.fallback.get(analysis_id)
        if not raw:
            return self.fallback.get(analysis_id)
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        record = SavedAnalysis.from_dict(json.loads(raw))
        if record.is_expired():
            self.delete(analysis_id)
            return None
        return record

    def delete(self, analysis_id: str) -> bool:
        try:
            deleted = self.client.delete(self._record_key(analysis_id))
        except Exception as exc:
            logger.warning("Redis error while deleting analysis %s: %s", analysis_id, exc)
            deleted = 0
        return bool(deleted) or self.fallback.delete(analysis_id)

    def list_by_email(self, email: str) -> List[SavedAnalysis]:
        records: List[SavedAnalysis] = []
        try:
            members = self.client.smembers(self._email_key(email)) or []
        except Exception as exc:
            logger.warning("Redis error while listing analyses: %s", exc)
            members = []
        for member in members:
            analysis_id = member.decode("utf-8") if isinstance(member, bytes) else member
            record = self.get(analysis_id)
            if record is None:
                self._forget(email, analysis_id)
                continue
            records.append(record)
        seen = {record.id for record in records}
        records.extend(record for record in self.fallback.list_by_email(email) if record.id not in seen)
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def _forget(self, email: str, analysis_id: str) -> None:
        try:
            self.client.srem(self._email_key(email), analysis_id)
        except Exception as exc:
            logger.warning("Redis error while pruning analysis %s: %s", analysis_id, exc)


def create_store(settings: Settings):
    """Use Upstash Redis when it is configured and reachable, otherwise memory."""

    if not settings.redis_configured:
        logger.info("Upstash Redis not configured; saved analyses are kept in memory")
        return InMemoryAnalysisStore(settings.save_ttl_hours)

    try:
        client = Redis(url=settings.upstash_redis_url, token=settings.upstash_redis_token)
        client.set("legalitea:connection_check", "ok", ex=5)
    except Exception as exc:
        logger.warning("Upstash Redis connection failed, using in-memory storage: %s", exc)
        return InMemoryAnalysisStore(settings.save_ttl_hours)

    logger.info("Upstash Redis connection established")
    return RedisAnalysisStore(client, settings.save_ttl_hours)
