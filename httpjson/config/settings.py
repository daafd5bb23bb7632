# Configuration management

from pydantic_settings import BaseSettings  # type: ignore
from functools import lru_cache


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Source defaults
    default_path_query: str = "$"
    default_sampling_ratio: float = 1.0
    default_try_times: int = 3
    corrupt_record_column: str = "_corrupt_record"

    # Schema inference
    sampling_seed: int = 1
    # Records nested deeper than this are treated as corrupt
    max_nesting_depth: int = 64

    # HTTP
    follow_redirects: bool = True

    class Config:
        env_file = ".env"
        env_prefix = "HTTPJSON_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
