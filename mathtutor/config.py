"""Configuration from .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Only needed when answers are escalated to the LLM verifier.
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ESCALATION_TIMEOUT_SECONDS: float = 10.0

    # Consecutive wrong answers before the next turn must be a refocus.
    STUCK_THRESHOLD: int = 3

    # Numeric comparison tolerances for the equivalence checker.
    NUMERIC_REL_TOL: float = 1e-9
    NUMERIC_ABS_TOL: float = 1e-10
    SUBSTITUTION_TRIALS: int = 5  # Sample points for the substitution test
    MAX_EXPRESSION_LENGTH: int = 200  # Longer answers are not handed to sympy

    SESSION_DATA_DIR: str = "data"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
