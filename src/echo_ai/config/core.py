import logging
import os
from pathlib import Path

from echo_ai.errors import ConfigurationError

from .loader import section

logger = logging.getLogger(__name__)


class Core:
    def __init__(self, config: dict | None = None, *, use_local: bool = False) -> None:
        cfg = (config or {}).get("echo", {})
        keys_cfg = section(config, "keys")
        models_cfg = section(config, "models")
        prompt_cfg = section(config, "prompt")

        token_env = str(keys_cfg.get("discord_token_env", "DISCORD_API_TOKEN"))
        openai_env = str(keys_cfg.get("openai_key_env", "OPENAI_API_KEY"))
        tavily_env = str(keys_cfg.get("tavily_key_env", "TAVILY_API_KEY"))

        self.DISCORD_API_TOKEN: str | None = os.getenv(token_env)
        self.OPENAI_API_KEY: str | None = os.getenv(openai_env)
        self.TAVILY_API_KEY: str | None = os.getenv(tavily_env)

        self.MSG_MODEL_ID: str = str(
            models_cfg.get("message_model") or os.getenv("MSG_MODEL_ID", "gpt-4o-mini")
        )
        self.BOT_NAME: str = str(cfg.get("bot_name", os.getenv("BOT_NAME", "Echo")))
        self.BASE_PROMPT_FILE: str = str(
            prompt_cfg.get("base_prompt_file", os.getenv("BASE_PROMPT_FILE", "data/base_prompt.txt"))
        )

        # Raw value on purpose: a non-string entry is replaced by the prompt builder's fallback.
        # None means "not configured" and selects the built-in persona prompt.
        self.BASE_PROMPT = prompt_cfg.get("base_prompt")
        if self.BASE_PROMPT is None:
            self.BASE_PROMPT = self._load_base_prompt()

        required = [("MSG_MODEL_ID", self.MSG_MODEL_ID)]
        if not use_local:
            required.append((openai_env, self.OPENAI_API_KEY))
        missing = [name for name, val in required if not val]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

    def _load_base_prompt(self) -> str | None:
        """Load the base system prompt from the configured file."""

        file_path = (self.BASE_PROMPT_FILE or "").strip()
        if not file_path:
            return None

        path = Path(file_path)
        if not path.is_file():
            logger.info("Base prompt file %s not found; using built-in prompt.", path)
            return None

        try:
            return path.read_text(encoding="utf-8").strip() or None
        except OSError as exc:
            logger.warning("Failed to read base prompt file %s: %s", path, exc)
            return None
