import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class Config:
    # Discord
    bot_token: str
    channel_id: int
    command_prefix: str = "!"
    auto_scan_images: bool = True

    # OCR
    ocr_confidence_threshold: float = 0.35
    ocr_pool_size: int = 3
    ocr_timeout: float = 30.0
    max_image_size_mb: int = 10

    # Match data sources
    football_api_key: Optional[str] = None
    brave_api_key: Optional[str] = None
    sportsdb_api_key: str = "3"

    # HTTP
    http_timeout: float = 10.0
    source_timeout: float = 10.0
    concurrent_processing: int = 2

    # Cache
    cache_enabled: bool = True
    cache_ttl_minutes: int = 60
    cache_max_entries: int = 1000

    # Parser
    anchor_fuzzy_threshold: int = 80

    # Rate limiting
    rate_limit_requests: int = 5
    rate_limit_window_sec: float = 60.0

    # Router
    router_enable_normalization: bool = True
    router_bookmaker_hints: List[str] = field(default_factory=lambda: [
        "bet365", "Sky Bet", "Paddy Power", "William Hill", "Betfred",
        "Coral", "Ladbrokes", "Betfair", "Unibet", "BetVictor",
    ])

    # Debug
    debug_logging: bool = False

    # Soccer competitions (ESPN league slugs)
    soccer_competitions: List[str] = field(default_factory=lambda: [
        "eng.1", "eng.2", "esp.1", "ita.1", "ger.1", "fra.1", "por.1", "usa.1"
    ])

    def validate(self) -> "Config":
        if not 1 <= self.ocr_pool_size <= 10:
            raise ValueError("OCR pool size must be between 1 and 10")
        if self.concurrent_processing < 1:
            raise ValueError("CONCURRENT_PROCESSING must be at least 1")
        if not 0 <= self.anchor_fuzzy_threshold <= 100:
            raise ValueError("ANCHOR_FUZZY must be between 0 and 100")
        if self.cache_max_entries < 1:
            raise ValueError("CACHE_MAX_ENTRIES must be at least 1")
        if self.source_timeout <= 0 or self.http_timeout <= 0:
            raise ValueError("Timeouts must be positive")
        return self

    @classmethod
    def from_env(cls) -> "Config":
        token = os.environ.get("BOT_TOKEN", "")
        channel_id = int(os.environ.get("CHANNEL_ID", "0"))
        return cls(
            bot_token=token,
            channel_id=channel_id,
            command_prefix=os.environ.get("COMMAND_PREFIX", "!"),
            auto_scan_images=_env_bool("AUTO_SCAN", "true"),
            ocr_confidence_threshold=float(os.environ.get("OCR_CONF", "0.35")),
            ocr_pool_size=int(os.environ.get("OCR_POOL_SIZE", "3")),
            ocr_timeout=float(os.environ.get("OCR_TIMEOUT", "30")),
            max_image_size_mb=int(os.environ.get("MAX_IMAGE_SIZE_MB", "10")),
            football_api_key=os.environ.get("FOOTBALL_API_KEY") or None,
            brave_api_key=os.environ.get("BRAVE_API_KEY") or None,
            sportsdb_api_key=os.environ.get("SPORTSDB_API_KEY", "3"),
            http_timeout=float(os.environ.get("HTTP_TIMEOUT", "10")),
            source_timeout=float(os.environ.get("SOURCE_TIMEOUT", "10")),
            concurrent_processing=int(os.environ.get("CONCURRENT_PROCESSING", "2")),
            cache_enabled=_env_bool("CACHE_ENABLED", "true"),
            cache_ttl_minutes=int(os.environ.get("CACHE_TTL_MINUTES", "60")),
            cache_max_entries=int(os.environ.get("CACHE_MAX_ENTRIES", "1000")),
            anchor_fuzzy_threshold=int(os.environ.get("ANCHOR_FUZZY", "80")),
            rate_limit_requests=int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "5")),
            rate_limit_window_sec=float(os.environ.get("RATE_LIMIT_WINDOW_SEC", "60")),
            router_enable_normalization=_env_bool("ROUTER_NORMALIZE", "true"),
            debug_logging=_env_bool("DEBUG_LOGGING", "false"),
        ).validate()
