from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM (empty provider -> offline template backend)
    llm_provider: str = ""
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    deepseek_api_key: str = ""
    llm_api_key: str = ""  # Used when the provider-specific key is empty
    llm_model: str = "claude-sonnet-4-20250514"
    llm_base_url: str = ""  # Custom base URL for openai_compatible provider

    # Server
    debug: bool = False

    # Output
    output_dir: str = "./output"

    # Client-supplied repository paths must live under this directory
    workspace_dir: str = "./workspace"

    # Automation defaults
    max_retries: int = 3
    quality_threshold: int = 70
    auto_approve: bool = False
    verbose: bool = True
    max_parallel_tasks: int = 1
    task_timeout_seconds: float | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
