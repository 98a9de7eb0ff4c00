
import logging
import time

from groq import Groq, GroqError

from middleware.error_handler import UpstreamFailure
from prompts import build_prediction_prompt

logger = logging.getLogger(__name__)


class PredictionGenerator:
    """Sends the prediction prompt to the chat completion API."""

    def __init__(self, client: Groq, model: str) -> None:
        self._client = client
        self.model = model

    def generate(self, team_a: str, team_b: str, context: str) -> str:
        """Return the raw completion text for the match."""
        prompt = build_prediction_prompt(team_a, team_b, context)
        start = time.perf_counter()
        try:
            completion = self._client.chat.completions.create(
                messages=[{"role": "user", "content": prompt}],
                model=self.model,
            )
        except GroqError as exc:
            logger.error("Chat completion failed", extra={"model": self.model, "error": str(exc)})
            raise UpstreamFailure("The AI service is unavailable.") from exc

        text = completion.choices[0].message.content if completion.choices else None
        logger.info(
            "Chat completion received",
            extra={
                "model": self.model,
                "chars": len(text or ""),
                "duration_ms": round((time.perf_counter() - start) * 1_000, 2),
            },
        )
        if not text or not text.strip():
            raise UpstreamFailure("The AI returned an empty response.")
        return text
