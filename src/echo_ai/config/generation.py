import os

from .loader import section


class Generation:
    def __init__(self, config: dict | None = None) -> None:
        gen_cfg = section(config, "generation")
        timeout_cfg = section(config, "timeouts")

        self.TEMPERATURE: float = float(gen_cfg.get("temperature", os.getenv("TEMPERATURE", "0.7")))
        self.MAX_TOKENS: int = int(gen_cfg.get("max_tokens", os.getenv("MAX_TOKENS", "1500")))
        self.PRESENCE_PENALTY: float = float(
            gen_cfg.get("presence_penalty", os.getenv("PRESENCE_PENALTY", "0.0"))
        )
        self.FREQUENCY_PENALTY: float = float(
            gen_cfg.get("frequency_penalty", os.getenv("FREQUENCY_PENALTY", "0.0"))
        )

        # Number of stored messages replayed to the model on every turn.
        self.HISTORY_WINDOW: int = int(gen_cfg.get("history_window", os.getenv("HISTORY_WINDOW", "10")))

        # Discord caps messages at 2000 characters; leave headroom for labels.
        self.CHUNK_LIMIT: int = int(gen_cfg.get("chunk_limit", os.getenv("CHUNK_LIMIT", "1900")))
        reserve_raw = gen_cfg.get("reserve_label", os.getenv("RESERVE_LABEL", "1"))
        self.RESERVE_LABEL: bool = str(reserve_raw).lower() in ("1", "true", "yes")
        self.PROMPT_MAX_LENGTH: int = int(
            gen_cfg.get("prompt_max_length", os.getenv("PROMPT_MAX_LENGTH", "8000"))
        )

        # Seconds allowed for each suspension point in the pipeline.
        self.KNOWLEDGE_TIMEOUT: float = float(
            timeout_cfg.get("knowledge", os.getenv("KNOWLEDGE_TIMEOUT", "5"))
        )
        self.SEARCH_TIMEOUT: float = float(timeout_cfg.get("search", os.getenv("SEARCH_TIMEOUT", "10")))
        self.HISTORY_TIMEOUT: float = float(
            timeout_cfg.get("history", os.getenv("HISTORY_TIMEOUT", "5"))
        )
        self.MODEL_TIMEOUT: float = float(timeout_cfg.get("model", os.getenv("MODEL_TIMEOUT", "60")))
