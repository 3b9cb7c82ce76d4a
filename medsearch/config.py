from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Perplexity (streamed search + enrichment)
    perplexity_api_key: str = ""
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar-pro"
    enrichment_model: str = "sonar"

    # Upstream web search options
    search_domain_filter: str = "youtube.com"  # comma separated
    search_context_size: str = "high"  # low | medium | high
    search_recency: str = "month"  # day | week | month | year
    request_timeout_s: float = 60.0

    # Interpreter
    max_citations_per_video: int = 4
    max_enrichment_citations: int = 3

    # Conversations held in memory (least recently used evicted first)
    max_conversations: int = 256
    max_history_turns: int = 10

    # Post-stream tasks
    enrichment_enabled: bool = False
    max_parallel_enrichment: int = 3
    link_probe_enabled: bool = True
    link_probe_timeout_s: float = 5.0
    max_parallel_probes: int = 4

    # App
    cors_origins: str = "http://localhost:3000"
    log_dir: str = "logs"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def search_domain_list(self) -> list[str]:
        return [d.strip() for d in self.search_domain_filter.split(",") if d.strip()]


settings = Settings()
