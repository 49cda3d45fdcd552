import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration class for environment variables and service settings.
    """
    # Service settings
    service_name: str = os.getenv("SERVICE_NAME", "matching_service")
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = os.getenv("DEBUG", "True").lower() == "true"

    # Logging settings
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG")

    # Embedding provider settings
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "your-openai-api-key")
    embedding_base_url: str = os.getenv("EMBEDDING_BASE_URL", "https://api.openai.com/v1")
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    embedding_dimensions: int = int(os.getenv("EMBEDDING_DIMENSIONS", "1536"))
    embedding_max_input_chars: int = int(os.getenv("EMBEDDING_MAX_INPUT_CHARS", "8000"))
    embedding_timeout_seconds: float = float(os.getenv("EMBEDDING_TIMEOUT_SECONDS", "10.0"))
    embedding_concurrency: int = int(os.getenv("EMBEDDING_CONCURRENCY", "10"))
    embedding_breaker_failure_threshold: int = int(os.getenv("EMBEDDING_BREAKER_FAILURE_THRESHOLD", "5"))
    embedding_breaker_reset_timeout: int = int(os.getenv("EMBEDDING_BREAKER_RESET_TIMEOUT", "30"))

    # Semantic search settings
    search_similarity_threshold: float = float(os.getenv("SEARCH_SIMILARITY_THRESHOLD", "0.7"))
    search_default_limit: int = int(os.getenv("SEARCH_DEFAULT_LIMIT", "20"))
    search_max_limit: int = int(os.getenv("SEARCH_MAX_LIMIT", "100"))
    search_candidate_limit: int = int(os.getenv("SEARCH_CANDIDATE_LIMIT", "50"))
    search_max_query_length: int = int(os.getenv("SEARCH_MAX_QUERY_LENGTH", "1000"))
    search_semantic_weight: float = float(os.getenv("SEARCH_SEMANTIC_WEIGHT", "0.7"))
    search_lexical_weight: float = float(os.getenv("SEARCH_LEXICAL_WEIGHT", "0.3"))

    # Recommendation settings
    recommendation_min_score: float = float(os.getenv("RECOMMENDATION_MIN_SCORE", "0.6"))
    recommendation_default_limit: int = int(os.getenv("RECOMMENDATION_DEFAULT_LIMIT", "10"))
    recommendation_max_limit: int = int(os.getenv("RECOMMENDATION_MAX_LIMIT", "25"))
    recommendation_candidate_limit: int = int(os.getenv("RECOMMENDATION_CANDIDATE_LIMIT", "100"))
    recommendation_weight_semantic: float = float(os.getenv("RECOMMENDATION_WEIGHT_SEMANTIC", "0.40"))
    recommendation_weight_skills: float = float(os.getenv("RECOMMENDATION_WEIGHT_SKILLS", "0.25"))
    recommendation_weight_experience: float = float(os.getenv("RECOMMENDATION_WEIGHT_EXPERIENCE", "0.15"))
    recommendation_weight_location: float = float(os.getenv("RECOMMENDATION_WEIGHT_LOCATION", "0.10"))
    recommendation_weight_salary: float = float(os.getenv("RECOMMENDATION_WEIGHT_SALARY", "0.10"))

    # Cache TTLs (seconds)
    embedding_cache_ttl: int = int(os.getenv("EMBEDDING_CACHE_TTL", str(60 * 60 * 24 * 7)))
    search_cache_ttl: int = int(os.getenv("SEARCH_CACHE_TTL", str(60 * 30)))
    recommendation_cache_ttl: int = int(os.getenv("RECOMMENDATION_CACHE_TTL", str(60 * 60 * 2)))
    local_cache_max_size: int = int(os.getenv("LOCAL_CACHE_MAX_SIZE", "1000"))

    # Redis cache settings
    redis_host: str = os.getenv("REDIS_HOST", "localhost")
    redis_port: int = int(os.getenv("REDIS_PORT", "6379"))
    redis_db: int = int(os.getenv("REDIS_DB", "0"))
    redis_password: str = os.getenv("REDIS_PASSWORD", "")
    redis_enabled: bool = os.getenv("REDIS_ENABLED", "True").lower() == "true"
    redis_namespace: str = os.getenv("REDIS_NAMESPACE", "matching")

    # PostgreSQL settings
    database_url: str = os.getenv("DATABASE_URL", "")
    db_pool_min_size: int = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
    db_pool_max_size: int = int(os.getenv("DB_POOL_MAX_SIZE", "10"))
    db_pool_timeout: float = float(os.getenv("DB_POOL_TIMEOUT", "30.0"))
    db_pool_max_idle: int = int(os.getenv("DB_POOL_MAX_IDLE", "300"))
    db_pool_max_lifetime: int = int(os.getenv("DB_POOL_MAX_LIFETIME", "3600"))

    # Authentication settings
    secret_key: str = os.getenv("SECRET_KEY", "your-secret-key-here")
    algorithm: str = os.getenv("ALGORITHM", "HS256")
    internal_api_key: str = os.getenv("INTERNAL_API_KEY", "default-for-development")

    # Performance thresholds
    slow_operation_threshold_ms: float = float(os.getenv("SLOW_OPERATION_THRESHOLD_MS", "2000.0"))

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()

__all__ = ["Settings", "settings"]
