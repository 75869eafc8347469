from pydantic import BaseModel


class ModelPricing(BaseModel):
    """USD per 1K tokens for the summarization model."""

    input_per_1k: float
    output_per_1k: float


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class SummaryResult(BaseModel):
    text: str
    tokens_used: int
    cost_estimate: float
