import logging
import re
from typing import Any

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, OpenAIError

from app.core.config import settings
from app.engine.errors import BackendConnectionError, BackendError, ParseError

logger = logging.getLogger(__name__)


def _strip_code_fences(text: str) -> str:
    if not text:
        return ""
    fenced = re.match(r"^\s*```[a-zA-Z0-9_-]*\s*([\s\S]*?)\s*```\s*$", text)
    if fenced:
        return fenced.group(1).strip()
    return text.strip()


class LLMClient:
    """Thin async chat-completions client for any provider speaking the OpenAI API spec."""

    def __init__(
        self,
        model_name: str,
        base_url: str,
        api_key: str,
        *,
        timeout: float | None = None,
    ):
        self.model_name = model_name
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            # Failures are terminal for the invocation; the user decides whether to retry.
            max_retries=0,
        )

    def _chat_completion_kwargs(self, *, temperature: float | None) -> dict:
        """Build provider/model-compatible kwargs for chat completions."""
        model_name = (self.model_name or "").lower()
        # GPT-5 family rejects non-default temperature values in some OpenAI endpoints.
        if model_name.startswith("gpt-5"):
            return {}
        if temperature is None:
            return {}
        return {"temperature": temperature}

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """
        Issue a single chat completion and return the raw message content.
        Transport problems raise BackendConnectionError; an empty or missing
        message raises ParseError.
        """
        kwargs = self._chat_completion_kwargs(
            temperature=settings.LLM_TEMPERATURE if temperature is None else temperature
        )
        if response_format is not None:
            kwargs["response_format"] = response_format

        logger.info("Issuing request to model %s...", self.model_name)
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **kwargs,
            )
        except (APIConnectionError, APITimeoutError) as e:
            logger.error("Could not reach provider for %s: %s", self.model_name, e)
            raise BackendConnectionError(f"Could not reach {self.model_name}: {e}") from e
        except APIStatusError as e:
            logger.error("Provider for %s returned HTTP %s: %s", self.model_name, e.status_code, e)
            raise BackendConnectionError(
                f"{self.model_name} request failed with HTTP {e.status_code}"
            ) from e
        except OpenAIError as e:
            logger.error("Error calling LLM provider %s: %s", self.model_name, e)
            raise BackendError(f"{self.model_name} request failed: {e}") from e

        if not getattr(response, "choices", None):
            logger.error("Received 0 choices from %s: %s", self.model_name, response)
            raise ParseError(f"Provider {self.model_name} returned no output.")

        text_response = (response.choices[0].message.content or "").strip()
        if not text_response:
            raise ParseError(f"Provider {self.model_name} returned empty content.")
        logger.info("Successfully received response from %s.", self.model_name)
        return text_response

    async def generate_text(self, system_prompt: str, user_prompt: str, *, temperature: float | None = None) -> str:
        """Plain text generation; strips a markdown fence wrapping the whole answer."""
        text_response = _strip_code_fences(
            await self.complete(system_prompt, user_prompt, temperature=temperature)
        )
        if not text_response:
            raise ParseError(f"Provider {self.model_name} returned empty content.")
        return text_response

    async def close(self) -> None:
        await self.client.close()
