import asyncio
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_huggingface import ChatHuggingFace, HuggingFaceEndpoint

from src.config.settings import Settings
from src.modules.summarizer.retry import (
    Backoff,
    RetryExhaustedError,
    Sleep,
    exponential_backoff,
    retry_with_backoff,
)
from src.modules.summarizer.schemas import ModelPricing, SummaryResult, TokenUsage

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 4000
MAX_ATTEMPTS = 3

SYSTEM_PROMPT = (
    "You are an AI news summarizer. Create concise, informative summaries of "
    "AI-related articles. Focus on key facts, developments, and implications. "
    "Keep summaries between 150-200 words. Use clear, professional language "
    "suitable for a tech-savvy audience."
)
USER_PROMPT_TEMPLATE = "Summarize this article:\n\n{content}"


class EmptySummaryError(Exception):
    pass


class SummarizationError(Exception):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Failed to summarize after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def calculate_cost(prompt_tokens: int, completion_tokens: int, pricing: ModelPricing) -> float:
    input_cost = (prompt_tokens / 1000) * pricing.input_per_1k
    output_cost = (completion_tokens / 1000) * pricing.output_per_1k
    return input_cost + output_cost


def extract_token_usage(message: BaseMessage) -> TokenUsage:
    usage = getattr(message, "usage_metadata", None)
    if usage:
        prompt = usage.get("input_tokens", 0) or 0
        completion = usage.get("output_tokens", 0) or 0
        total = usage.get("total_tokens") or prompt + completion
        return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)

    # Providers that only report OpenAI-style usage in the response metadata
    token_usage = (message.response_metadata or {}).get("token_usage") or {}
    prompt = token_usage.get("prompt_tokens", 0) or 0
    completion = token_usage.get("completion_tokens", 0) or 0
    total = token_usage.get("total_tokens") or prompt + completion
    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def build_chat_model(settings: Settings) -> ChatHuggingFace:
    llm = HuggingFaceEndpoint(
        repo_id=settings.llm_model,
        huggingfacehub_api_token=settings.hf_api_token,
        provider="auto",
        task="text-generation",
        temperature=settings.llm_temperature,
        max_new_tokens=settings.llm_max_tokens,
    )
    return ChatHuggingFace(llm=llm)


class SummarizerService:
    """Produces short article summaries with retries and cost accounting."""

    def __init__(
        self,
        chat_model: BaseChatModel,
        pricing: ModelPricing,
        max_input_chars: int = MAX_INPUT_CHARS,
        max_attempts: int = MAX_ATTEMPTS,
        backoff: Backoff = exponential_backoff(),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._chat_model = chat_model
        self._pricing = pricing
        self._max_input_chars = max_input_chars
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._sleep = sleep

    def _build_messages(self, content: str) -> list[BaseMessage]:
        return [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(
                content=USER_PROMPT_TEMPLATE.format(content=content[: self._max_input_chars])
            ),
        ]

    async def _complete(self, messages: list[BaseMessage]) -> SummaryResult:
        response = await self._chat_model.ainvoke(messages)
        text = response.content.strip() if isinstance(response.content, str) else ""
        if not text:
            raise EmptySummaryError("Empty summary received from LLM")

        usage = extract_token_usage(response)
        return SummaryResult(
            text=text,
            tokens_used=usage.total_tokens,
            cost_estimate=calculate_cost(
                usage.prompt_tokens, usage.completion_tokens, self._pricing
            ),
        )

    async def summarize(self, content: str) -> SummaryResult:
        messages = self._build_messages(content)
        try:
            result = await retry_with_backoff(
                lambda: self._complete(messages),
                max_attempts=self._max_attempts,
                backoff=self._backoff,
                sleep=self._sleep,
                description="summarization",
            )
        except RetryExhaustedError as exc:
            raise SummarizationError(exc.attempts, exc.last_error) from exc

        logger.info(
            "Summary generated (%d tokens, $%.6f)", result.tokens_used, result.cost_estimate
        )
        return result
